#!/usr/bin/env python3
"""
CLI for wp-tasks

Provisioning, configuration, deployment and testing of a WordPress site,
locally and on Pantheon.
"""

import sys
from pathlib import Path

import click

from wp_tasks import __version__
from wp_tasks.commands.behat import run_tests
from wp_tasks.commands.configure import configure_project
from wp_tasks.commands.deploy import deploy_to_host
from wp_tasks.commands.info import show_info
from wp_tasks.commands.init import init_project
from wp_tasks.commands.install import install_site
from wp_tasks.commands.pantheon import remote_deploy, remote_install, remote_test
from wp_tasks.commands.server import start_server
from wp_tasks.config import load_project_properties
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import make_runner, timeout_from_env
from wp_tasks.utils.terminus import Terminus


class TaskContext:
    """
    Per-invocation state shared by the commands
    """

    def __init__(self, working_dir: Path, verbose: bool = False):
        self.working_dir = working_dir
        self.verbose = verbose
        self._settings = None
        self._properties = None
        self._runner = None

    @property
    def settings(self) -> TaskSettings:
        if self._settings is None:
            self._settings = TaskSettings.load(self.working_dir)
        return self._settings

    @property
    def runner(self):
        if self._runner is None:
            self._runner = make_runner(timeout_from_env() or self.settings.command_timeout)
        return self._runner

    @property
    def properties(self):
        if self._properties is None:
            self._properties = load_project_properties(
                self.working_dir, settings=self.settings, runner=self.runner
            )
        return self._properties


pass_context = click.make_pass_decorator(TaskContext)


def _exit_on_failure(result):
    if result is None or not result.success:
        sys.exit(1)


plugins_option = click.option(
    "--plugins",
    help="Comma-separated plugins to activate (defaults to install.plugins in wp-tasks.yaml)",
)


def _split_plugins(plugins):
    if plugins is None:
        return None
    return [plugin.strip() for plugin in plugins.split(",") if plugin.strip()]


# Main command group
@click.group()
@click.version_option(__version__)
@click.option("--working-dir", "-C", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=".", help="Project directory (defaults to the current directory)")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed information during execution")
@click.pass_context
def cli(ctx, working_dir, verbose):
    """
    Task runner for WordPress sites hosted on Pantheon.

    Installs, configures and tests the site locally, and deploys it
    to Pantheon environments through the host git repository.
    """
    ctx.obj = TaskContext(working_dir.resolve(), verbose=verbose)


@cli.command("init")
@pass_context
def init_command(task):
    """
    Initializes the project for the first time.

    Renames the project after its git repository in composer.json and
    .env.example and removes the new-repo instructions from README.md.
    """
    init_project(task.working_dir, task.settings, runner=task.runner)


@cli.command("configure")
@click.option("--db-password", help="Database password (use NULL for an empty password)")
@click.option("--db-user", help="Database user")
@click.option("--db-name", help="Database name")
@click.option("--db-host", help="Database host")
@click.option("--branch", help="Branch")
@click.option("--url", help="Base URL for the WordPress site")
@click.option("--reset", is_flag=True, help="Recreate .env from .env.example first")
@pass_context
def configure_command(task, db_password, db_user, db_name, db_host, branch, url, reset):
    """
    Generates configuration in your .env file.
    """
    options = {
        "db-password": db_password,
        "db-user": db_user,
        "db-name": db_name,
        "db-host": db_host,
        "branch": branch,
        "url": url,
    }
    properties = configure_project(task.properties, options, task.settings, reset=reset)
    if task.verbose:
        properties.display()


@cli.command("deploy")
@click.argument("target_branch", required=False)
@pass_context
def deploy_command(task, target_branch):
    """
    Deploys the project to its host repository.

    TARGET_BRANCH deploys to that host branch instead of the current one.
    """
    result = deploy_to_host(task.properties, task.settings, target_branch=target_branch,
                            runner=task.runner, verbose=task.verbose)
    _exit_on_failure(result)


@cli.command("install")
@plugins_option
@click.option("--empty-uploads", is_flag=True, help="Delete uploaded files before installing")
@pass_context
def install_command(task, plugins, empty_uploads):
    """
    Installs or re-installs the WordPress site locally.
    """
    result = install_site(task.properties, task.settings, plugins=_split_plugins(plugins),
                          empty_uploads_dir=empty_uploads, runner=task.runner)
    _exit_on_failure(result)


@cli.command("info")
@click.option("--properties", "with_properties", is_flag=True, help="Also show the resolved project properties")
@pass_context
def info_command(task, with_properties):
    """
    Outputs PHP info.
    """
    result = show_info(task.properties if with_properties else None, runner=task.runner)
    _exit_on_failure(result)


@cli.command("test")
@click.option("--feature", help="Single feature file to run, e.g. features/user.feature")
@click.option("--profile", help="Behat profile to run, e.g. local or ci")
@pass_context
def test_command(task, feature, profile):
    """
    Runs the behat tests for this site.
    """
    profile = profile or task.settings.get("behat", "profile", default="local")
    result = run_tests(task.properties, profile=profile, feature=feature,
                       settings=task.settings, runner=task.runner)
    _exit_on_failure(result)


@cli.command("run")
@click.option("--port", type=int, help="Port number to listen on (defaults to 8088)")
@pass_context
def run_server_command(task, port):
    """
    Runs PHP's built-in webserver at localhost:PORT in the background.
    """
    port = port or task.settings.get("server", "port", default=8088)
    start_server(task.properties, port=port)


@cli.command("remote-deploy")
@click.option("--install", is_flag=True, help="Trigger an install on Pantheon after deploying")
@click.option("--yes", "-y", is_flag=True, help="Answer prompts with yes")
@click.option("--target-branch", help="Deploy to this branch and environment instead of the current one")
@pass_context
def remote_deploy_command(task, install, yes, target_branch):
    """
    Prepares a Pantheon multidev for this project/branch and deploys to it.
    """
    result = remote_deploy(task.properties, task.settings, install=install, assume_yes=yes,
                           target_branch=target_branch, runner=task.runner, verbose=task.verbose)
    _exit_on_failure(result)


@cli.command("remote-install")
@plugins_option
@pass_context
def remote_install_command(task, plugins):
    """
    Installs the site on its Pantheon environment.
    """
    result = remote_install(task.properties, task.settings, plugins=_split_plugins(plugins), runner=task.runner)
    _exit_on_failure(result)


@cli.command("remote-test")
@click.option("--feature", help="Single feature file to run, e.g. features/user.feature")
@pass_context
def remote_test_command(task, feature):
    """
    Runs tests against the Pantheon environment.
    """
    result = remote_test(task.properties, feature=feature, settings=task.settings, runner=task.runner)
    _exit_on_failure(result)


@cli.command("terminus", context_settings={"ignore_unknown_options": True})
@click.argument("subcommand")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@pass_context
def terminus_command(task, subcommand, args):
    """
    Runs a terminus SUBCOMMAND against this project's site environment.

    Example: wp-tasks terminus env:clear-cache
    """
    result = Terminus(task.properties, runner=task.runner).run(subcommand, *args)
    if result.stdout:
        click.echo(result.stdout.rstrip())
    _exit_on_failure(result)


def main():
    """
    Main entry point
    """
    try:
        cli()
    except Exception as e:
        click.echo(f"❌ Error: {str(e)}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
