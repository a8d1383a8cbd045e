"""
Environment information
"""

from typing import Optional

from wp_tasks.config import ProjectProperties
from wp_tasks.utils.process import CommandResult, run_command


def show_info(properties: Optional[ProjectProperties] = None, runner=run_command) -> CommandResult:
    """
    Prints PHP's configuration (`php -i`) and, if given, the project properties
    """
    if properties is not None:
        properties.display()

    result = runner("php", ["-i"], echo=False)
    if result.success:
        print(result.stdout)
    return result
