"""
Utilities for mirroring directories with rsync
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from wp_tasks.utils.process import CommandResult, run_command

# archive, verbose, compress; ownership is left to the receiving side
ARCHIVE_OPTIONS = ["-a", "-v", "-z", "--no-group", "--no-owner"]


def build_rsync_args(
    source: Union[str, Path],
    dest: Union[str, Path],
    options: Optional[Sequence[str]] = None,
    exclusions: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Builds the rsync argument list

    Args:
        source: Source path (a trailing / copies the directory contents)
        dest: Destination path
        options: rsync options (defaults to archive mode)
        exclusions: Patterns passed as --exclude

    Returns:
        List[str]: Arguments for the rsync executable
    """
    args = list(ARCHIVE_OPTIONS if options is None else options)
    for pattern in exclusions or []:
        if pattern:
            args.append(f"--exclude={pattern}")
    args.extend([str(source), str(dest)])
    return args


def run_rsync(
    source: Union[str, Path],
    dest: Union[str, Path],
    options: Optional[Sequence[str]] = None,
    exclusions: Optional[Sequence[str]] = None,
    runner=run_command,
    verbose: bool = False,
) -> CommandResult:
    """
    Executes rsync to mirror files

    Args:
        source: Source of the synchronization
        dest: Destination of the synchronization
        options: rsync options (defaults to archive mode)
        exclusions: Patterns to exclude
        runner: Command runner
        verbose: If True, prints rsync's file list as it runs

    Returns:
        CommandResult: Result of the rsync run
    """
    if verbose and exclusions:
        print(f"📋 Applying {len(exclusions)} exclusion patterns:")
        for pattern in exclusions:
            print(f"   - {pattern}")

    result = runner("rsync", build_rsync_args(source, dest, options, exclusions), stream=verbose)

    if result.success:
        print("✅ Synchronization completed successfully")
    return result
