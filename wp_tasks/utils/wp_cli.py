"""
Utilities for interacting with WP-CLI from Python

Local commands run `wp` in the project directory. The same interface is
implemented for Pantheon environments by RemoteWPCLI in
wp_tasks.utils.terminus, so install sequences are written once.
"""

import secrets
from pathlib import Path
from typing import Iterable, List, Optional, Union

from tqdm import tqdm

from wp_tasks.utils.process import CommandResult, run_command


def generate_password(nbytes: int = 10) -> str:
    """
    Generates a random hexadecimal admin password
    """
    return secrets.token_hex(nbytes)


def admin_username(project: str) -> str:
    return f"{project}_admin"


def core_install_args(url: str, title: str, admin_user: str, password: str, email: str) -> List[str]:
    """
    Builds the arguments of `wp core install`
    """
    return [
        "core",
        "install",
        f"--url={url}",
        f"--title={title}",
        f"--admin_user={admin_user}",
        f"--admin_password={password}",
        f"--admin_email={email}",
        "--skip-email",
    ]


class WPCLI:
    """
    WP-CLI commands used by the install tasks
    """

    def __init__(self, path: Union[str, Path], runner=run_command, executable: str = "wp"):
        """
        Args:
            path: Directory to run wp in (the project directory)
            runner: Command runner
            executable: WP-CLI executable
        """
        self.path = Path(path)
        self.runner = runner
        self.executable = executable

    def run(self, *args: str) -> CommandResult:
        return self.runner(self.executable, list(args), cwd=self.path)

    def db_reset(self) -> CommandResult:
        return self.run("db", "reset", "--yes")

    def core_install(self, url: str, title: str, admin_user: str, password: str, email: str) -> CommandResult:
        return self.run(*core_install_args(url, title, admin_user, password, email))

    def activate_plugins(self, plugins: Iterable[str]) -> CommandResult:
        """
        Activates plugins one by one

        Returns:
            CommandResult: First failed activation, or the last result
        """
        plugins = [plugin for plugin in plugins if plugin]
        result = CommandResult(0, "", "")
        first_failure: Optional[CommandResult] = None

        for plugin in tqdm(plugins, unit="plugin", desc="Activating plugins"):
            result = self.run("plugin", "activate", plugin)
            if not result.success and first_failure is None:
                first_failure = result

        return first_failure or result

    def config_pull(self, bundle: str = "all") -> CommandResult:
        return self.run("config", "pull", bundle)

    def rewrite_flush(self) -> CommandResult:
        return self.run("rewrite", "flush")
