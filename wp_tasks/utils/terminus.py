"""
Utilities for the Pantheon terminus CLI

Every command is scoped to the project's `<site>.<env>` identifier.
"""

from typing import List, Optional

from wp_tasks.config import ProjectProperties, join_site_env
from wp_tasks.utils.process import CommandResult, run_command
from wp_tasks.utils.wp_cli import WPCLI


class Terminus:
    """
    Thin wrapper around terminus for one site environment
    """

    def __init__(self, properties: ProjectProperties, runner=run_command,
                 env: Optional[str] = None, executable: str = "terminus"):
        """
        Args:
            properties: Project properties (site and default environment)
            runner: Command runner
            env: Environment to target instead of properties.terminus_env
            executable: terminus executable
        """
        self.site = properties.terminus_site
        self.env = env or properties.terminus_env
        self.working_dir = properties.working_dir
        self.runner = runner
        self.executable = executable

    @property
    def site_env(self) -> str:
        return join_site_env(self.site, self.env)

    def run(self, subcommand: str, *args: str) -> CommandResult:
        """
        Runs any terminus subcommand against this site environment
        """
        return self.runner(self.executable, [subcommand, self.site_env, *args], cwd=self.working_dir)

    def env_exists(self) -> bool:
        return self.run("env:info").success

    def create_env(self, from_env: str = "dev") -> CommandResult:
        """
        Creates this environment as a multidev cloned from from_env
        """
        return self.runner(
            self.executable,
            ["multidev:create", join_site_env(self.site, from_env), self.env],
            cwd=self.working_dir,
        )

    def wake(self) -> CommandResult:
        return self.run("env:wake")

    def set_connection_mode(self, mode: str = "git") -> CommandResult:
        return self.run("connection:set", mode)

    def wipe(self) -> CommandResult:
        return self.run("env:wipe", "--yes")

    def domains(self) -> List[str]:
        """
        Lists the domains serving this environment

        Returns:
            List[str]: Domain names, empty if the query failed
        """
        result = self.run("domain:list", "--format=list", "--field=id")
        if not result.success:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def wp(self, *args: str) -> CommandResult:
        return self.run("remote:wp", "--", *args)


class RemoteWPCLI(WPCLI):
    """
    WP-CLI commands executed on Pantheon through `terminus remote:wp`
    """

    def __init__(self, terminus: Terminus):
        super().__init__(terminus.working_dir, terminus.runner, executable=terminus.executable)
        self.terminus = terminus

    def run(self, *args: str) -> CommandResult:
        return self.terminus.wp(*args)
