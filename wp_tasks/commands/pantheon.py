"""
Deployment, installation and testing on Pantheon environments

These tasks drive terminus for the project's `<site>.<env>` and reuse
the host deployment and install sequences.
"""

from typing import Callable, List, Optional

import click

from wp_tasks.commands.behat import pantheon_behat_params, run_tests
from wp_tasks.commands.deploy import deploy_to_host
from wp_tasks.commands.install import admin_email, first_failure, report_credentials
from wp_tasks.config import ProjectProperties, derive_environment
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import CommandResult, run_command
from wp_tasks.utils.terminus import RemoteWPCLI, Terminus
from wp_tasks.utils.wp_cli import admin_username, generate_password


def _confirm_create(message: str) -> bool:
    return click.confirm(message, default=False)


def remote_deploy(
    properties: ProjectProperties,
    settings: Optional[TaskSettings] = None,
    install: bool = False,
    assume_yes: bool = False,
    target_branch: Optional[str] = None,
    runner=run_command,
    confirm: Callable[[str], bool] = _confirm_create,
    verbose: bool = False,
) -> Optional[CommandResult]:
    """
    Prepares a Pantheon environment for this branch and deploys to it

    Args:
        properties: Project properties
        settings: Task settings
        install: Run a remote install after deploying
        assume_yes: Create a missing environment without asking
        target_branch: Host branch (and environment) to deploy to
        runner: Command runner
        confirm: Callback asking the user to confirm environment creation
        verbose: If True, shows rsync output

    Returns:
        Optional[CommandResult]: Result of the last step, or None if the
        user declined to create the environment
    """
    settings = settings or TaskSettings()
    env = derive_environment(target_branch, settings) if target_branch else properties.terminus_env
    terminus = Terminus(properties, runner=runner, env=env)

    # Check for an existing multidev and offer to create it
    if not terminus.env_exists():
        if not assume_yes and not confirm(f"No matching multidev found for {terminus.site_env}. Create it?"):
            print("❌ Deployment cancelled.")
            return None
        result = terminus.create_env(from_env=settings.get("pantheon", "from_env", default="dev"))
        if not result.success:
            return result

    terminus.wake()
    terminus.set_connection_mode("git")

    result = deploy_to_host(properties, settings, target_branch=target_branch, runner=runner, verbose=verbose)
    if not result.success:
        return result

    if install:
        return remote_install(properties, settings, runner=runner, env=env)
    return result


def remote_install(
    properties: ProjectProperties,
    settings: Optional[TaskSettings] = None,
    plugins: Optional[List[str]] = None,
    runner=run_command,
    env: Optional[str] = None,
) -> CommandResult:
    """
    Wipes and installs the site on its Pantheon environment

    Args:
        properties: Project properties
        settings: Task settings
        plugins: Plugins to activate (defaults to install.plugins)
        runner: Command runner
        env: Environment to install instead of properties.terminus_env

    Returns:
        CommandResult: The first failed result, or the install result
    """
    settings = settings or TaskSettings()
    if plugins is None:
        plugins = settings.get_list("install", "plugins")

    terminus = Terminus(properties, runner=runner, env=env)
    wp = RemoteWPCLI(terminus)

    domains = terminus.domains()
    if not domains:
        return CommandResult(1, "", f"Could not find a domain for {terminus.site_env}")
    url = f"https://{domains[0]}"

    results = [terminus.wipe()]

    username = admin_username(properties.project)
    password = generate_password()
    install_result = wp.core_install(
        url=url,
        title=properties.project,
        admin_user=username,
        password=password,
        email=admin_email(properties, settings),
    )
    results.append(install_result)

    if plugins:
        results.append(wp.activate_plugins(plugins))

    results.append(wp.config_pull(settings.get("install", "config_bundle", default="all")))

    failed = first_failure(results)
    if failed is not None:
        return failed

    report_credentials(username, password)
    print(f"🌐 {url}")
    return install_result


def remote_test(
    properties: ProjectProperties,
    feature: Optional[str] = None,
    settings: Optional[TaskSettings] = None,
    runner=run_command,
) -> CommandResult:
    """
    Runs the pantheon behat profile against the project's Pantheon environment
    """
    params = pantheon_behat_params(properties, settings=settings)
    return run_tests(
        properties,
        profile="pantheon",
        feature=feature,
        settings=settings,
        env={"BEHAT_PARAMS": params},
        runner=runner,
    )
