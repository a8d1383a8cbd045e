"""
YAML-based task settings for wp-tasks

Tool-level knobs (deploy exclusions, plugins to activate, timeouts,
behat layout...) live in an optional wp-tasks.yaml file in the project
directory. Values found there are merged over the built-in defaults.
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

SETTINGS_FILE = "wp-tasks.yaml"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "default_branch": "master",
    "dev_env": "dev",
    "commands": {
        "timeout": None,
    },
    "deploy": {
        "tmp_prefix": "wp-deploy-",
        "fetch_dir": "host",
        "commit_header": "Combined commits:",
        "exclusions": [
            ".git/",
            ".svn/",
            ".hg/",
            ".bzr/",
            "CVS/",
            ".gitignore",
            ".env",
            ".ddev/",
        ],
    },
    "install": {
        "plugins": [],
        "uploads_dir": None,
        "admin_email": "dev-team+{project}@example.com",
        "config_bundle": "all",
    },
    "init": {
        "vendor": "thinkshout",
        "template_package": "bedrock",
    },
    "behat": {
        "dir": "behat",
        "format": "progress",
        "profile": "local",
    },
    "server": {
        "port": 8088,
    },
    "pantheon": {
        "from_env": "dev",
        "domain": "pantheonsite.io",
    },
}


class TaskSettings:
    """
    Task settings merged from defaults and wp-tasks.yaml
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, source: Optional[Path] = None):
        self.config = copy.deepcopy(DEFAULT_SETTINGS)
        self.source = source
        if config:
            self.merge_config(config)

    @classmethod
    def load(cls, working_dir: Path) -> "TaskSettings":
        """
        Loads wp-tasks.yaml from the working directory if it exists

        Args:
            working_dir: Project directory

        Returns:
            TaskSettings: Settings with the file merged over the defaults

        Raises:
            ValueError: If the file is not valid YAML or not a mapping
        """
        settings_file = Path(working_dir) / SETTINGS_FILE
        if not settings_file.exists():
            return cls()

        try:
            with open(settings_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {settings_file}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"{settings_file} must contain a mapping at the top level")

        return cls(data, source=settings_file)

    def merge_config(self, config: Dict[str, Any]):
        """
        Merges the provided configuration with the current configuration
        """
        self._update_dict_recursive(self.config, config)

    def _update_dict_recursive(self, target: Dict, source: Dict):
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict_recursive(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    def get(self, *path: str, default: Any = None) -> Any:
        """
        Gets a setting according to a key path

        Args:
            *path: Key path to access the value
            default: Default value if the path is not found

        Returns:
            The setting value or the default value
        """
        current = self.config
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]
        return current

    def get_list(self, *path: str) -> List[str]:
        """
        Gets a setting that should be a list of strings

        A single string is accepted and wrapped; None becomes an empty list.
        """
        value = self.get(*path)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]

    @property
    def command_timeout(self) -> Optional[float]:
        timeout = self.get("commands", "timeout")
        if timeout in (None, "", 0):
            return None
        return float(timeout)
