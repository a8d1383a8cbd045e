"""
One-time initialization of a project created from the starter template

Renames the project in composer.json and .env.example after the git
repository and removes the "new repo" instructions from README.md.
Running it a second time fails because the markers are gone.
"""

from pathlib import Path
from typing import List, Optional

from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import run_command
from wp_tasks.utils.text import FindReplaceRule, TemplateError, apply_substitutions, find_text_between

README_START = "### Initial build (new repo)"
README_END = "### Initial build (existing repo)"
README_PLACEHOLDER = "new-project-name"


def repository_name(working_dir: Path, runner=run_command) -> str:
    """
    Gets the name of the git repository's root directory

    Raises:
        TemplateError: If working_dir is not inside a git repository
    """
    result = runner("git", ["rev-parse", "--show-toplevel"], cwd=working_dir, echo=False)
    toplevel = result.stdout.strip()
    if not result.success or not toplevel:
        raise TemplateError(f"{working_dir} is not inside a git repository")
    return Path(toplevel).name


def build_init_rules(working_dir: Path, repo: str, settings: Optional[TaskSettings] = None) -> List[FindReplaceRule]:
    """
    Builds the find/replace rules for a freshly cloned project

    Raises:
        TemplateError: If README.md lacks the new-repo instructions markers
    """
    settings = settings or TaskSettings()
    vendor = settings.get("init", "vendor")
    package = settings.get("init", "template_package")

    readme = working_dir / "README.md"
    new_repo_instructions = find_text_between(README_START, README_END, readme.read_text())
    if not new_repo_instructions:
        raise TemplateError(
            f"Could not find the section between '{README_START}' and '{README_END}' in {readme}. "
            f"Has the project already been initialized?"
        )

    return [
        FindReplaceRule(
            working_dir / "composer.json",
            f'"name": "{vendor}/{package}",',
            f'"name": "{vendor}/{repo}",',
        ),
        FindReplaceRule(working_dir / ".env.example", 'PROJECT="SITE"', f'PROJECT="{repo}"'),
        FindReplaceRule(working_dir / ".env.example", "URL=http://example.com", f"URL=http://{repo}"),
        FindReplaceRule(
            readme,
            [new_repo_instructions, README_PLACEHOLDER],
            [README_END, repo],
        ),
    ]


def init_project(working_dir: Path, settings: Optional[TaskSettings] = None, runner=run_command) -> bool:
    """
    Initializes the project for the first time

    Returns:
        bool: True when the files were rewritten
    """
    repo = repository_name(working_dir, runner)
    print(f"🔧 Initializing project '{repo}'")

    rules = build_init_rules(working_dir, repo, settings)
    apply_substitutions(rules)

    print(f"✅ Project initialized as '{repo}'")
    return True
