"""
Behat test runs for the site
"""

import json
from typing import Dict, Optional

from wp_tasks.config import ProjectProperties
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import CommandResult, run_command


def behat_args(profile: str, feature: Optional[str] = None, settings: Optional[TaskSettings] = None):
    """
    Builds the behat arguments for a profile

    The configuration file is expected at <behat.dir>/behat.<profile>.yml.
    """
    settings = settings or TaskSettings()
    config_dir = settings.get("behat", "dir", default="behat")
    args = [
        "--config", f"{config_dir}/behat.{profile}.yml",
        "--profile", profile,
        "--format", settings.get("behat", "format", default="progress"),
    ]
    if feature:
        args.append(feature)
    return args


def run_tests(
    properties: ProjectProperties,
    profile: str = "local",
    feature: Optional[str] = None,
    settings: Optional[TaskSettings] = None,
    env: Optional[Dict[str, str]] = None,
    runner=run_command,
) -> CommandResult:
    """
    Runs behat with the given profile

    Args:
        properties: Project properties
        profile: Behat profile, e.g. local, ci or pantheon
        feature: Single feature file to run, e.g. features/user.feature
        settings: Task settings
        env: Extra environment variables for behat
        runner: Command runner

    Returns:
        CommandResult: Result of the behat run
    """
    print(f"🧪 Running behat ({profile})")
    return runner("behat", behat_args(profile, feature, settings), cwd=properties.working_dir,
                  env=env, stream=True)


def pantheon_behat_params(properties: ProjectProperties, env: Optional[str] = None,
                          settings: Optional[TaskSettings] = None) -> str:
    """
    Builds BEHAT_PARAMS pointing behat at a Pantheon environment

    Returns:
        str: JSON overriding the Mink base URL and the WordPress extension target
    """
    settings = settings or TaskSettings()
    env = env or properties.terminus_env
    site = properties.terminus_site
    domain = settings.get("pantheon", "domain", default="pantheonsite.io")

    params = {
        "extensions": {
            "Behat\\MinkExtension": {
                "base_url": f"https://{env}-{site}.{domain}",
            },
            "PaulGibbs\\WordpressBehatExtension": {
                "path": str(properties.web_root),
                "wpcli": {
                    "alias": f"@pantheon.{site}.{env}",
                },
            },
        },
    }
    return json.dumps(params)
