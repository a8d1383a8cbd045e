"""
Local (re)installation of the WordPress site

Installs dependencies, wipes the database and runs a fresh
`wp core install` with a generated admin password.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from wp_tasks.config import ProjectProperties
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.filesystem import clean_dir
from wp_tasks.utils.process import CommandResult, run_command
from wp_tasks.utils.wp_cli import WPCLI, admin_username, generate_password


def admin_email(properties: ProjectProperties, settings: TaskSettings) -> str:
    pattern = settings.get("install", "admin_email", default="dev-team+{project}@example.com")
    return pattern.format(project=properties.project)


def first_failure(results: Iterable[CommandResult]) -> Optional[CommandResult]:
    for result in results:
        if not result.success:
            return result
    return None


def report_credentials(username: str, password: str):
    print("✅ Install complete")
    print(f"   Admin: {username}")
    print(f"   Password: {password}")


def empty_uploads(properties: ProjectProperties, uploads_dir: str) -> int:
    """
    Deletes everything in the uploads directory (relative to the web root)
    """
    uploads = Path(properties.web_root) / uploads_dir
    removed = clean_dir(uploads)
    print(f"🧹 Emptied {uploads} ({removed} entries removed)")
    return removed


def install_site(
    properties: ProjectProperties,
    settings: Optional[TaskSettings] = None,
    plugins: Optional[List[str]] = None,
    empty_uploads_dir: bool = False,
    runner=run_command,
) -> CommandResult:
    """
    Installs or re-installs the site locally

    Every step runs even if an earlier one failed; success is checked
    once at the end.

    Args:
        properties: Project properties
        settings: Task settings
        plugins: Plugins to activate (defaults to install.plugins)
        empty_uploads_dir: Delete the contents of install.uploads_dir first
        runner: Command runner

    Returns:
        CommandResult: The first failed result, or the `wp core install` result
    """
    settings = settings or TaskSettings()
    if plugins is None:
        plugins = settings.get_list("install", "plugins")

    wp = WPCLI(properties.working_dir, runner=runner)
    results: List[CommandResult] = []

    # Install dependencies. Only works locally.
    results.append(runner("composer", ["install", "--optimize-autoloader"],
                          cwd=properties.working_dir, stream=True))

    uploads_dir = settings.get("install", "uploads_dir")
    if empty_uploads_dir:
        if uploads_dir:
            empty_uploads(properties, uploads_dir)
        else:
            print("⚠️ install.uploads_dir is not configured, uploads were not emptied")

    results.append(wp.db_reset())

    username = admin_username(properties.project)
    password = generate_password()
    install_result = wp.core_install(
        url=properties.url,
        title=properties.project,
        admin_user=username,
        password=password,
        email=admin_email(properties, settings),
    )
    results.append(install_result)

    if plugins:
        results.append(wp.activate_plugins(plugins))

    results.append(wp.config_pull(settings.get("install", "config_bundle", default="all")))
    results.append(wp.rewrite_flush())

    failed = first_failure(results)
    if failed is not None:
        return failed

    report_credentials(username, password)
    return install_result
