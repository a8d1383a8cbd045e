"""
Configuration module for wp-tasks

This module builds the ProjectProperties for one invocation from the
project's .env file (or .env.example when no .env exists yet), the
process environment and explicit overrides, and persists individual
keys back to the .env file.

Precedence, highest first: explicit overrides, process environment,
.env file, defaults.
"""

import os
import re
import secrets
import shlex
import shutil
import string
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values, set_key

from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import run_command

ENV_FILE = ".env"
ENV_TEMPLATE = ".env.example"

# Keys recognized in the .env file and the process environment
KNOWN_KEYS = (
    "PROJECT",
    "HOST_REPO",
    "URL",
    "BRANCH",
    "TERMINUS_ENV",
    "TERMINUS_SITE",
    "WEB_ROOT",
    "DB_NAME",
    "DB_USER",
    "DB_PASSWORD",
    "DB_HOST",
)

WORDPRESS_SALT_KEYS = (
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
)

_SAFE_ARG = re.compile(r"^[\w-]+$")
_SALT_ALPHABET = string.ascii_letters + string.digits + "!#%()*+,-./:;<=>?@[]^_{|}~"


class ConfigurationError(ValueError):
    """
    Raised when the project configuration is missing or invalid
    """


@dataclass(frozen=True)
class ProjectProperties:
    """
    Resolved configuration of the project for a single invocation
    """
    project: str
    host_repo: str
    url: str
    branch: str
    terminus_env: str
    terminus_site: str
    terminus_site_env: str
    working_dir: Path
    web_root: Path
    escaped_web_root_path: str
    db_name: str
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""

    def with_values(self, **changes) -> "ProjectProperties":
        """
        Returns a copy with some fields replaced, keeping derived fields consistent
        """
        updated = replace(self, **changes)
        if "terminus_env" in changes or "terminus_site" in changes:
            updated = replace(
                updated,
                terminus_site_env=join_site_env(updated.terminus_site, updated.terminus_env),
            )
        return updated

    def as_dict(self) -> Dict[str, str]:
        return {key: str(value) for key, value in asdict(self).items()}

    def display(self):
        """
        Displays the properties, hiding passwords
        """
        print("\n🔧 Project properties:")
        for key, value in self.as_dict().items():
            if "password" in key:
                value = "********" if value else ""
            print(f"   - {key}: {value}")
        print()


def env_var_name(key: str) -> str:
    """
    Maps a property or option name to its environment variable name
    """
    return key.upper().replace("-", "_")


def escape_arg(value: str) -> str:
    """
    Returns value unchanged when it is a plain word, otherwise shell-quoted
    """
    return value if _SAFE_ARG.match(value) else shlex.quote(value)


def join_site_env(site: str, env: str) -> str:
    return f"{site}.{env}"


def derive_environment(branch: str, settings: Optional[TaskSettings] = None) -> str:
    """
    Maps a git branch to the Pantheon environment that hosts it

    The default branch is served by the development environment; any
    other branch deploys to the multidev of the same name.
    """
    settings = settings or TaskSettings()
    if branch == settings.get("default_branch"):
        return settings.get("dev_env")
    return branch


def detect_branch(working_dir: Path, runner=run_command) -> str:
    """
    Gets the current branch of the git checkout in working_dir

    Returns:
        str: Branch name, or an empty string when detached or not in a repository
    """
    result = runner("git", ["symbolic-ref", "--short", "-q", "HEAD"], cwd=working_dir, echo=False)
    if not result.success:
        return ""
    return result.stdout.strip()


def find_env_file(working_dir: Path) -> Path:
    """
    Gets the file the base configuration is read from

    Raises:
        ConfigurationError: If neither .env nor .env.example exists
    """
    for name in (ENV_FILE, ENV_TEMPLATE):
        candidate = working_dir / name
        if candidate.is_file():
            return candidate
    raise ConfigurationError(
        f"No {ENV_FILE} or {ENV_TEMPLATE} file found in {working_dir}. "
        f"Run 'wp-tasks configure' from the project root."
    )


def read_env_file(path: Path) -> Dict[str, str]:
    """
    Parses a .env file without touching os.environ

    Raises:
        ConfigurationError: If the file cannot be parsed
    """
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e
    return {key: value or "" for key, value in values.items() if key}


def load_project_properties(
    working_dir: Optional[Path] = None,
    overrides: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    settings: Optional[TaskSettings] = None,
    runner=run_command,
) -> ProjectProperties:
    """
    Builds the project properties for this invocation

    Args:
        working_dir: Project directory (defaults to the current directory)
        overrides: Explicit values, keyed like KNOWN_KEYS; highest precedence
        environ: Process environment (defaults to os.environ)
        settings: Task settings (default branch and development alias)
        runner: Command runner used to query git for the current branch

    Returns:
        ProjectProperties: Resolved properties

    Raises:
        ConfigurationError: If the configuration file is missing or unusable
    """
    working_dir = Path(working_dir or os.getcwd()).resolve()
    environ = os.environ if environ is None else environ
    settings = settings or TaskSettings()

    file_values = read_env_file(find_env_file(working_dir))
    explicit = {env_var_name(key): value for key, value in (overrides or {}).items() if value is not None}

    values: Dict[str, str] = {}
    for key in KNOWN_KEYS:
        if key in explicit:
            values[key] = explicit[key]
        elif environ.get(key):
            values[key] = environ[key]
        else:
            values[key] = file_values.get(key, "")

    project = values["PROJECT"]
    if not project:
        raise ConfigurationError("PROJECT is not set in the environment file")

    if values["WEB_ROOT"]:
        web_root = working_dir / values["WEB_ROOT"]
    else:
        web_root = working_dir

    branch = values["BRANCH"] or detect_branch(working_dir, runner)

    # TERMINUS_ENV may pin a branch to another environment (e.g. a shared QA
    # multidev); without it the environment follows the branch
    terminus_env = values["TERMINUS_ENV"] or derive_environment(branch, settings)
    terminus_site = values["TERMINUS_SITE"] or project

    return ProjectProperties(
        project=project,
        host_repo=values["HOST_REPO"],
        url=values["URL"],
        branch=branch,
        terminus_env=terminus_env,
        terminus_site=terminus_site,
        terminus_site_env=join_site_env(terminus_site, terminus_env),
        working_dir=working_dir,
        web_root=web_root,
        escaped_web_root_path=escape_arg(str(web_root)),
        db_name=values["DB_NAME"] or f"{project}_{branch}",
        db_user=values["DB_USER"],
        db_password=values["DB_PASSWORD"],
        db_host=values["DB_HOST"],
    )


def generate_salt(length: int = 64) -> str:
    return "".join(secrets.choice(_SALT_ALPHABET) for _ in range(length))


class EnvFile:
    """
    The project's persisted .env file
    """

    def __init__(self, working_dir: Path):
        self.working_dir = Path(working_dir)
        self.path = self.working_dir / ENV_FILE
        self.template = self.working_dir / ENV_TEMPLATE

    def exists(self) -> bool:
        return self.path.is_file()

    def initialize(self, force: bool = False, with_salts: bool = True) -> bool:
        """
        Creates .env from .env.example

        Args:
            force: Overwrite an existing .env file
            with_salts: Write freshly generated WordPress keys and salts

        Returns:
            bool: True if the file was (re)created, False if it was kept

        Raises:
            ConfigurationError: If the template does not exist
        """
        if self.exists() and not force:
            print(f"ℹ️ Keeping existing {self.path}")
            return False

        if not self.template.is_file():
            raise ConfigurationError(f"Template not found: {self.template}")

        shutil.copyfile(self.template, self.path)
        print(f"📝 Created {self.path} from {self.template.name}")

        if with_salts:
            for key in WORDPRESS_SALT_KEYS:
                self.set(key, generate_salt(), quiet=True)
            print(f"🔑 Generated {len(WORDPRESS_SALT_KEYS)} WordPress keys and salts")

        return True

    def set(self, key: str, value: str, quiet: bool = False):
        """
        Persists a single key, adding it or replacing its current value
        """
        if not self.exists():
            self.path.touch()
        quote_mode = "never" if re.match(r"^[\w\-.:/@]*$", value) else "always"
        set_key(str(self.path), key, value, quote_mode=quote_mode)
        if not quiet:
            shown = "********" if "PASSWORD" in key else value
            print(f"✅ {key}={shown}")

    def values(self) -> Dict[str, str]:
        if not self.exists():
            return {}
        return read_env_file(self.path)
