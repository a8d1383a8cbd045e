"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

import pytest

from wp_tasks.config import load_project_properties
from wp_tasks.settings import TaskSettings
from wp_tasks.utils.process import CommandResult

ENV_TEMPLATE = """\
PROJECT="acme"
HOST_REPO=git@example.test:acme/host.git
URL=http://acme.test
DB_USER=root
DB_PASSWORD=secret
DB_HOST=localhost
"""


class Call(NamedTuple):
    program: str
    args: List[str]
    options: Dict
    command: str


class FakeRunner:
    """
    Records commands instead of running them

    `responses` maps a command prefix (e.g. "git clone") to the
    CommandResult to return, or to a callable receiving the Call.
    """

    def __init__(self, responses: Optional[Dict] = None):
        self.responses = responses or {}
        self.calls: List[Call] = []

    def __call__(self, program, args=(), **options):
        args = [str(arg) for arg in args]
        command = " ".join([program, *args])
        call = Call(program, args, options, command)
        self.calls.append(call)

        for prefix, response in self.responses.items():
            if command.startswith(prefix):
                if callable(response):
                    return response(call)
                return response
        return CommandResult(0, "", "", command)

    @property
    def commands(self) -> List[str]:
        return [call.command for call in self.calls]

    def find(self, prefix: str) -> List[Call]:
        return [call for call in self.calls if call.command.startswith(prefix)]


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(0, stdout, "")


def failed(stderr: str = "boom", returncode: int = 1) -> CommandResult:
    return CommandResult(returncode, "", stderr)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project directory with a .env.example template."""
    project = tmp_path / "acme"
    project.mkdir()
    (project / ".env.example").write_text(ENV_TEMPLATE)
    return project


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner({"git symbolic-ref": ok("feature-x\n")})


@pytest.fixture
def settings() -> TaskSettings:
    return TaskSettings()


@pytest.fixture
def properties(project_dir: Path, runner: FakeRunner, settings: TaskSettings):
    return load_project_properties(project_dir, environ={}, settings=settings, runner=runner)


@pytest.fixture
def isolated_tmp(tmp_path: Path, monkeypatch) -> Path:
    """Points tempfile.gettempdir() at a directory owned by the test."""
    tmp_root = tmp_path / "tmp"
    tmp_root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_root))
    return tmp_root
