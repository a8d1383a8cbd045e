"""Tests for deploying the project to its host repository."""

import shutil
import subprocess
from pathlib import Path

import pytest

from conftest import FakeRunner, failed, ok
from wp_tasks.commands.deploy import HostDeployer, build_commit_message, deploy_to_host
from wp_tasks.settings import TaskSettings

HOST_LOG = "2024-01-01 10:00:00 +0000"
PROJECT_LOG = "b2c3d4e fix b\na1b2c3d fix a\n"


def deploy_runner(**responses) -> FakeRunner:
    defaults = {
        "git log -1": ok(HOST_LOG),
        "git log --pretty": ok(PROJECT_LOG),
    }
    defaults.update(responses)
    return FakeRunner(defaults)


def test_build_commit_message():
    message = build_commit_message("Combined commits:", PROJECT_LOG)
    assert message == "Combined commits:\nb2c3d4e fix b\na1b2c3d fix a"


def test_build_commit_message_without_commits():
    assert build_commit_message("Combined commits:", "") == "Combined commits:"


class TestHostDeployer:
    """Tests for HostDeployer."""

    def test_runs_steps_in_order(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        result = deploy_to_host(properties, runner=runner)

        assert result.success
        programs = [(call.program, call.args[0]) for call in runner.calls]
        assert programs == [
            ("git", "clone"),
            ("git", "checkout"),
            ("git", "log"),
            ("git", "log"),
            ("rsync", "-a"),
            ("rsync", "-a"),
            ("git", "add"),
            ("git", "commit"),
            ("git", "push"),
        ]

    def test_clones_host_and_checks_out_branch(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        deployer = HostDeployer(properties, runner=runner)
        deployer.deploy()

        clone = runner.find("git clone")[0]
        assert clone.args[1] == "git@example.test:acme/host.git"
        assert Path(clone.args[2]) == deployer.host_dir
        assert deployer.tmp_dir.parent == Path(str(isolated_tmp)).resolve()

        checkout = runner.find("git checkout")[0]
        assert checkout.args == ["checkout", "feature-x"]
        assert checkout.options["cwd"] == deployer.host_dir

    def test_commit_message_lists_commits_since_last_host_update(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        deployer = HostDeployer(properties, runner=runner)
        deployer.deploy()

        since = runner.find("git log --pretty")[0]
        assert f"--since={HOST_LOG}" in since.args
        assert since.options["cwd"] == properties.working_dir

        commit = runner.find("git commit")[0]
        assert commit.args[2] == "Combined commits:\nb2c3d4e fix b\na1b2c3d fix a"
        assert commit.options["cwd"] == deployer.deploy_dir

    def test_stages_project_without_private_files(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        deployer = HostDeployer(properties, runner=runner)
        deployer.deploy()

        stage, graft = runner.find("rsync")
        assert "--exclude=.env" in stage.args
        assert "--exclude=.gitignore" in stage.args
        assert "--exclude=.git/" in stage.args
        assert stage.args[-2] == f"{properties.working_dir}/"
        assert stage.args[-1] == str(deployer.deploy_dir)

        assert graft.args[-2] == str(deployer.host_dir / ".git")
        assert graft.args[-1] == str(deployer.deploy_dir)

    def test_private_files_excluded_even_if_settings_drop_them(self, properties, isolated_tmp: Path):
        settings = TaskSettings({"deploy": {"exclusions": ["node_modules/"]}})
        runner = deploy_runner()
        deploy_to_host(properties, settings, runner=runner)

        stage = runner.find("rsync")[0]
        assert "--exclude=node_modules/" in stage.args
        assert "--exclude=.env" in stage.args
        assert "--exclude=.gitignore" in stage.args

    def test_target_branch_overrides_project_branch(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        deploy_to_host(properties, target_branch="release", runner=runner)

        assert runner.find("git checkout")[0].args == ["checkout", "release"]
        assert runner.find("git push")[0].args == ["push", "origin", "release"]

    def test_clone_failure_stops_deployment(self, properties, isolated_tmp: Path):
        runner = deploy_runner(**{"git clone": failed("repository not found", 128)})
        result = deploy_to_host(properties, runner=runner)

        assert result.returncode == 128
        assert runner.commands[-1].startswith("git clone")
        assert runner.find("rsync") == []
        assert runner.find("git push") == []

    def test_staging_failure_stops_deployment(self, properties, isolated_tmp: Path):
        runner = deploy_runner(rsync=failed("rsync error", 23))
        result = deploy_to_host(properties, runner=runner)

        assert result.returncode == 23
        assert len(runner.find("rsync")) == 1
        assert runner.find("git add") == []

    def test_push_failure_is_returned(self, properties, isolated_tmp: Path):
        runner = deploy_runner(**{"git push": failed("rejected")})
        result = deploy_to_host(properties, runner=runner)
        assert result.stderr == "rejected"

    def test_missing_host_repo(self, properties, isolated_tmp: Path):
        runner = deploy_runner()
        result = deploy_to_host(properties.with_values(host_repo=""), runner=runner)
        assert not result.success
        assert "HOST_REPO" in result.stderr
        assert runner.calls == []

    def test_prepare_empties_leftover_directory(self, properties, isolated_tmp: Path):
        deployer = HostDeployer(properties, runner=deploy_runner())
        tmp_dir = deployer.prepare()
        (tmp_dir / "leftover.txt").write_text("old run")

        assert deployer.prepare() == tmp_dir
        assert not (tmp_dir / "leftover.txt").exists()
        assert deployer.host_dir.is_dir()


def git(cwd: Path, *args: str) -> str:
    return subprocess.run(
        ["git", *args], cwd=str(cwd), check=True, capture_output=True, text=True
    ).stdout


@pytest.mark.skipif(shutil.which("git") is None or shutil.which("rsync") is None,
                    reason="git and rsync are required")
def test_deploys_to_real_host_repository(properties, tmp_path: Path, isolated_tmp: Path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Deployer")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "deployer@example.test")

    def commit_at(repo: Path, message: str, date: str):
        monkeypatch.setenv("GIT_AUTHOR_DATE", date)
        monkeypatch.setenv("GIT_COMMITTER_DATE", date)
        git(repo, "commit", "-q", "--allow-empty", "-m", message)

    # Host repository with one commit on master
    host = tmp_path / "host.git"
    git(tmp_path, "init", "-q", "--bare", str(host))
    git(host, "symbolic-ref", "HEAD", "refs/heads/master")
    seed = tmp_path / "seed"
    git(tmp_path, "init", "-q", str(seed))
    (seed / "index.php").write_text("<?php // host")
    git(seed, "add", "-A")
    commit_at(seed, "host start", "2024-01-01T10:00:00+0000")
    git(seed, "push", "-q", str(host), "HEAD:master")

    # Project repository with commits before and after the host update
    site = tmp_path / "site"
    git(tmp_path, "init", "-q", str(site))
    (site / "index.php").write_text("<?php // site")
    (site / ".gitignore").write_text(".env\n")
    (site / ".env").write_text("DB_PASSWORD=secret\n")
    git(site, "add", "index.php", ".gitignore")
    commit_at(site, "initial", "2023-12-31T10:00:00+0000")
    commit_at(site, "fix a", "2024-01-02T10:00:00+0000")
    commit_at(site, "fix b", "2024-01-03T10:00:00+0000")

    site_properties = properties.with_values(working_dir=site, host_repo=str(host), branch="master")
    deployer = HostDeployer(site_properties)
    result = deployer.deploy()

    assert result.success, result.stderr
    message = git(host, "log", "-1", "--pretty=format:%B", "master").strip().splitlines()
    assert message[0] == "Combined commits:"
    subjects = [line.split(" ", 1)[1] for line in message[1:]]
    assert subjects == ["fix b", "fix a"]

    tracked = git(host, "ls-tree", "--name-only", "master").split()
    assert "index.php" in tracked
    assert ".env" not in tracked
    assert ".gitignore" not in tracked
    assert git(host, "show", "master:index.php") == "<?php // site"
    assert not (deployer.deploy_dir / ".env").exists()
