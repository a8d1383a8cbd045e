"""
Utilities for running external command-line tools

Every task in wp-tasks is a sequence of calls to composer, wp, git,
rsync, terminus or behat. This module is the single place where those
processes are started.
"""

import os
import shlex
import subprocess
import threading
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Sequence, Union

# Exit codes used for failures that never reached the tool itself
TIMEOUT_EXIT_CODE = 124
NOT_FOUND_EXIT_CODE = 127

PathLike = Union[str, Path]


class CommandResult(NamedTuple):
    """
    Result of an external command: exit code plus captured output
    """
    returncode: int
    stdout: str
    stderr: str
    command: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def message(self) -> str:
        """
        Trimmed standard output, or standard error if nothing was printed
        """
        return (self.stdout or self.stderr).strip()


def format_command(program: str, args: Sequence[str] = ()) -> str:
    """
    Formats a command for display, quoting arguments the way a shell would need
    """
    return " ".join(shlex.quote(str(part)) for part in [program, *args])


def timeout_from_env(environ: Optional[Dict[str, str]] = None) -> Optional[float]:
    """
    Reads the command timeout policy from WP_TASKS_TIMEOUT

    Returns:
        Optional[float]: Timeout in seconds, or None for no timeout
    """
    environ = os.environ if environ is None else environ
    value = environ.get("WP_TASKS_TIMEOUT", "").strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        print(f"⚠️ Ignoring invalid WP_TASKS_TIMEOUT value: {value}")
        return None
    return seconds if seconds > 0 else None


def run_command(
    program: str,
    args: Sequence[str] = (),
    cwd: Optional[PathLike] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    stream: bool = False,
    echo: bool = True,
) -> CommandResult:
    """
    Executes an external program and waits for it to finish

    No timeout is applied unless one is given: cloning, pushing and remote
    test runs can legitimately take a long time.

    Args:
        program: Executable name or path
        args: Arguments passed to the program
        cwd: Working directory (defaults to the current directory)
        env: Extra environment variables for the child process
        timeout: Seconds before the process is killed (None waits forever)
        stream: If True, prints output line by line while collecting it
        echo: If True, prints the command before running it

    Returns:
        CommandResult: Exit code, standard output and standard error
    """
    cmd = [str(program), *[str(arg) for arg in args]]
    cmd_str = format_command(cmd[0], cmd[1:])

    if echo:
        print(f"🔄 Executing: {cmd_str}")

    child_env = None
    if env:
        child_env = os.environ.copy()
        child_env.update(env)

    try:
        if stream:
            result = _run_streaming(cmd, cwd, child_env, timeout, cmd_str)
        else:
            process = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=child_env,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
            result = CommandResult(process.returncode, process.stdout, process.stderr, cmd_str)
    except subprocess.TimeoutExpired:
        result = CommandResult(
            TIMEOUT_EXIT_CODE, "", f"Command timed out after {timeout} seconds: {cmd_str}", cmd_str
        )
    except FileNotFoundError:
        result = CommandResult(NOT_FOUND_EXIT_CODE, "", f"Command not found: {program}", cmd_str)

    if not result.success:
        print(f"❌ Command failed (code {result.returncode}): {cmd_str}")
        if result.stderr:
            print(result.stderr.rstrip())

    return result


def make_runner(timeout: Optional[float] = None):
    """
    Returns run_command with a default timeout policy applied

    A timeout passed explicitly by the caller still takes precedence.
    """
    def runner(program: str, args: Sequence[str] = (), **options) -> CommandResult:
        if options.get("timeout") is None:
            options["timeout"] = timeout
        return run_command(program, args, **options)

    return runner


def _run_streaming(cmd: List[str], cwd: Optional[PathLike], env: Optional[Dict[str, str]],
                   timeout: Optional[float], cmd_str: str) -> CommandResult:
    # stderr is merged into stdout so the tool's own messages keep their order
    process = subprocess.Popen(
        cmd,
        cwd=str(cwd) if cwd else None,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
    )

    # Reading blocks until the process exits, so the timeout is enforced by a timer
    killed = threading.Event()

    def _kill():
        killed.set()
        process.kill()

    timer = threading.Timer(timeout, _kill) if timeout else None
    if timer:
        timer.start()

    output = []
    try:
        for line in process.stdout:
            line = line.rstrip()
            print(line)
            output.append(line)
        process.wait()
    finally:
        process.stdout.close()
        if timer:
            timer.cancel()

    if killed.is_set():
        raise subprocess.TimeoutExpired(cmd, timeout)

    text = "\n".join(output)
    if process.returncode == 0:
        return CommandResult(0, text, "", cmd_str)
    return CommandResult(process.returncode, "", text, cmd_str)


class CommandSequence:
    """
    Ordered list of commands run one after another

    With stop_on_fail enabled the first failing command ends the sequence
    and its result is returned unchanged.
    """

    def __init__(self, runner=run_command, cwd: Optional[PathLike] = None,
                 stop_on_fail: bool = True, timeout: Optional[float] = None):
        self.runner = runner
        self.cwd = cwd
        self.stop_on_fail = stop_on_fail
        self.timeout = timeout
        self.steps: List[tuple] = []

    def add(self, program: str, *args: str, cwd: Optional[PathLike] = None, **options) -> "CommandSequence":
        self.steps.append((program, list(args), cwd or self.cwd, options))
        return self

    def run(self) -> CommandResult:
        """
        Runs the queued commands

        Returns:
            CommandResult: First failed result when stopping on failure,
            otherwise the result of the last command
        """
        result = CommandResult(0, "", "")
        first_failure = None

        for program, args, cwd, options in self.steps:
            options.setdefault("timeout", self.timeout)
            result = self.runner(program, args, cwd=cwd, **options)
            if not result.success:
                if self.stop_on_fail:
                    return result
                if first_failure is None:
                    first_failure = result

        return first_failure or result


def spawn_detached(program: str, args: Sequence[str] = (), cwd: Optional[PathLike] = None) -> subprocess.Popen:
    """
    Starts a process in its own session and returns without waiting

    The caller never waits for, stops or monitors the process: it keeps
    running after wp-tasks exits and is outside any failure handling.

    Returns:
        subprocess.Popen: Handle of the started process
    """
    cmd = [str(program), *[str(arg) for arg in args]]
    print(f"🚀 Starting in background: {format_command(cmd[0], cmd[1:])}")
    return subprocess.Popen(
        cmd,
        cwd=str(cwd) if cwd else None,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
