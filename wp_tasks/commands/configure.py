"""
Generation of the project's .env file
"""

from typing import Dict, Optional

from wp_tasks.config import EnvFile, ProjectProperties, derive_environment, env_var_name
from wp_tasks.settings import TaskSettings

ALLOWED_OPTIONS = ("db-password", "db-user", "db-name", "db-host", "branch", "url")

# Passing this literal stores an empty value (e.g. a blank database password)
EMPTY_VALUE = "NULL"


def configure_project(
    properties: ProjectProperties,
    options: Dict[str, Optional[str]],
    settings: Optional[TaskSettings] = None,
    reset: bool = False,
) -> ProjectProperties:
    """
    Writes configuration values to the .env file

    Only the allowed options that were given are written. The Pantheon
    environment and the branch are always written afterwards so that
    they stay consistent with each other.

    Args:
        properties: Current project properties
        options: Option values keyed by option name (db-password, branch...)
        settings: Task settings
        reset: Recreate .env from .env.example even if it exists

    Returns:
        ProjectProperties: Properties updated with the written values
    """
    settings = settings or TaskSettings()
    env_file = EnvFile(properties.working_dir)
    env_file.initialize(force=reset)

    changes: Dict[str, str] = {}
    for option in ALLOWED_OPTIONS:
        value = options.get(option)
        if value is None:
            continue
        if value == EMPTY_VALUE:
            value = ""
        env_file.set(env_var_name(option), value)
        changes[option.replace("-", "_")] = value

    if "branch" in changes and "db_name" not in changes and not env_file.values().get("DB_NAME"):
        changes["db_name"] = f"{properties.project}_{changes['branch']}"

    updated = properties.with_values(**changes)

    terminus_env = derive_environment(updated.branch, settings)
    env_file.set("TERMINUS_ENV", terminus_env)
    env_file.set("BRANCH", updated.branch)

    return updated.with_values(terminus_env=terminus_env)
