"""
Deployment of the site to its host repository

The host (e.g. Pantheon) keeps its own git repository. A deployment
mirrors the project's files into a temporary directory, grafts the
host repository's .git directory onto them and pushes the result as a
single commit to the matching branch of the host.
"""

from pathlib import Path
from typing import List, Optional

from wp_tasks.config import ProjectProperties
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.filesystem import build_tmp_dir, clean_dir, ensure_dir_exists
from wp_tasks.utils.process import CommandResult, CommandSequence, run_command
from wp_tasks.utils.rsync import run_rsync

# Never shipped to the host, whatever the settings say
REQUIRED_EXCLUSIONS = [".git/", ".gitignore", ".env"]


def build_commit_message(header: str, log_output: str) -> str:
    """
    Builds the deployment commit message from `git log` output

    Args:
        header: First line of the message
        log_output: One `<short hash> <subject>` line per commit

    Returns:
        str: Header followed by the commit lines, in the order given
    """
    lines = [line for line in log_output.strip().splitlines() if line.strip()]
    return "\n".join([header, *lines])


class HostDeployer:
    """
    Pushes the project to a branch of the host repository
    """

    def __init__(self, properties: ProjectProperties, settings: Optional[TaskSettings] = None,
                 runner=run_command, verbose: bool = False):
        self.properties = properties
        self.settings = settings or TaskSettings()
        self.runner = runner
        self.verbose = verbose

        self.tmp_dir: Optional[Path] = None
        self.commit_message = ""

    @property
    def fetch_dir_name(self) -> str:
        return self.settings.get("deploy", "fetch_dir", default="host")

    @property
    def host_dir(self) -> Path:
        return self.tmp_dir / self.fetch_dir_name

    @property
    def deploy_dir(self) -> Path:
        return self.tmp_dir / "deploy"

    def get_exclusions(self) -> List[str]:
        exclusions = self.settings.get_list("deploy", "exclusions")
        for pattern in REQUIRED_EXCLUSIONS:
            if pattern not in exclusions:
                exclusions.append(pattern)
        return exclusions

    def prepare(self) -> Path:
        """
        Creates an empty temp directory for this run

        Returns:
            Path: The temp directory
        """
        self.tmp_dir = build_tmp_dir(self.settings.get("deploy", "tmp_prefix", default="wp-deploy-"))
        ensure_dir_exists(self.tmp_dir)

        # A previous run in the same second may have left files behind
        clean_dir(self.tmp_dir)
        ensure_dir_exists(self.host_dir)

        print(f"📁 Working in {self.tmp_dir}")
        return self.tmp_dir

    def fetch_host(self, branch: str) -> CommandResult:
        """
        Clones the host repository and checks out the target branch
        """
        repo = self.properties.host_repo
        print(f"📥 Fetching {repo} ({branch})")

        return (
            CommandSequence(self.runner, stop_on_fail=True)
            .add("git", "clone", repo, str(self.host_dir))
            .add("git", "checkout", branch, cwd=self.host_dir)
            .run()
        )

    def derive_commit_message(self) -> str:
        """
        Lists the project commits made since the host branch was last updated
        """
        last_remote_commit = self.runner(
            "git", ["log", "-1", "--date=short", "--pretty=format:%ci"], cwd=self.host_dir
        )
        last_commit_date = last_remote_commit.stdout.strip()

        args = ["log", "--pretty=format:%h %s", "--no-merges"]
        if last_commit_date:
            args.append(f"--since={last_commit_date}")
        log = self.runner("git", args, cwd=self.properties.working_dir)

        header = self.settings.get("deploy", "commit_header", default="Combined commits:")
        return build_commit_message(header, log.stdout)

    def stage_files(self) -> CommandResult:
        """
        Mirrors the project into the deploy directory
        """
        print("📤 Staging project files")
        source = f"{str(self.properties.working_dir).rstrip('/')}/"
        return run_rsync(source, self.deploy_dir, exclusions=self.get_exclusions(),
                         runner=self.runner, verbose=self.verbose)

    def graft_history(self) -> CommandResult:
        """
        Moves the host's .git into the deploy directory
        """
        print("🌱 Grafting host repository history")
        return run_rsync(self.host_dir / ".git", self.deploy_dir, runner=self.runner, verbose=self.verbose)

    def commit_and_push(self, branch: str) -> CommandResult:
        return (
            CommandSequence(self.runner, cwd=self.deploy_dir, stop_on_fail=True)
            .add("git", "add", "-A")
            .add("git", "commit", "-m", self.commit_message)
            .add("git", "push", "origin", branch)
            .run()
        )

    def deploy(self, target_branch: Optional[str] = None) -> CommandResult:
        """
        Runs the whole deployment, stopping at the first failure

        Args:
            target_branch: Host branch to deploy to instead of the project branch

        Returns:
            CommandResult: Result of the push, or of the step that failed
        """
        branch = target_branch or self.properties.branch
        if not self.properties.host_repo:
            return CommandResult(1, "", "HOST_REPO is not configured")
        if not branch:
            return CommandResult(1, "", "No branch to deploy: set BRANCH or check out a branch")

        print(f"🚀 Deploying {self.properties.project} to {branch}")
        self.prepare()

        result = self.fetch_host(branch)
        if not result.success:
            return result

        self.commit_message = self.derive_commit_message()

        for step in (self.stage_files, self.graft_history):
            result = step()
            if not result.success:
                return result

        result = self.commit_and_push(branch)
        if result.success:
            print(f"✅ Deployed to {branch}")

        # The temp directory is kept for inspection
        print(f"ℹ️ Deployment files left in {self.tmp_dir}")
        return result


def deploy_to_host(properties: ProjectProperties, settings: Optional[TaskSettings] = None,
                   target_branch: Optional[str] = None, runner=run_command,
                   verbose: bool = False) -> CommandResult:
    """
    Deploys the project to its host repository

    Args:
        properties: Project properties
        settings: Task settings
        target_branch: Host branch to deploy to instead of the project branch
        runner: Command runner
        verbose: If True, shows rsync output

    Returns:
        CommandResult: Result of the deployment
    """
    deployer = HostDeployer(properties, settings, runner=runner, verbose=verbose)
    return deployer.deploy(target_branch=target_branch)
