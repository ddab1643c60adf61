"""Tests for the dotdot command line."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotdot import __version__
from dotdot.cli.app import app
from dotdot.core.config import CONFIG_FILE_NAME
from dotdot.core.errors import ErrorCode

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # --workspace exports DOTDOT_WORKSPACE; make sure it is restored after each test.
    monkeypatch.delenv("DOTDOT_WORKSPACE", raising=False)


def _workspace(tmp_path: Path, content: str = "[repos]\n") -> Path:
    root = tmp_path / "ws"
    root.mkdir()
    (root / CONFIG_FILE_NAME).write_text(content, encoding="utf-8")
    return root


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestInit:
    def test_creates_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert (tmp_path / CONFIG_FILE_NAME).read_text(encoding="utf-8") == "[repos]\n"

    def test_already_initialized(self, tmp_path: Path) -> None:
        root = _workspace(tmp_path, '[repos.a]\nurl = "u"\n')

        result = runner.invoke(app, ["init", str(root)])

        assert result.exit_code == 0
        assert "Workspace already initialized" in result.output
        assert (root / CONFIG_FILE_NAME).read_text(encoding="utf-8") == '[repos.a]\nurl = "u"\n'


class TestWorkspaceDetection:
    def test_outside_workspace(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["status"])

        assert result.exit_code == int(ErrorCode.ENV_ERROR)

    def test_found_from_subdirectory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = _workspace(tmp_path)
        (root / "nested").mkdir()
        monkeypatch.chdir(root / "nested")

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "No repos declared in config" in result.output

    def test_invalid_workspace_option(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--workspace", str(tmp_path), "status"])
        assert result.exit_code == int(ErrorCode.ENV_ERROR)

    def test_workspace_option(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path)
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        result = runner.invoke(app, ["--workspace", str(root), "tree"])

        assert result.exit_code == 0
        assert "(no repos)" in result.output

    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DOTDOT_WORKSPACE", str(root))

        result = runner.invoke(app, ["restore", "--dry-run"])

        assert result.exit_code == 0
        assert "No repos declared in config" in result.output


class TestExitCodes:
    def test_invalid_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path, "[repos.a]\n")
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["restore"])

        assert result.exit_code == int(ErrorCode.CONFIG_ERROR)
        assert "repos.a.url" in result.output

    def test_failed_repo(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path, '[repos.a]\nurl = "u"\n\n[repos.b]\nurl = "u"\n')
        (root / "a").mkdir()
        (root / "b").mkdir()
        (root / "b" / ".git").mkdir()
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["restore"])

        assert result.exit_code == int(ErrorCode.OPERATION_FAILED)
        assert "Directory exists but is not a git repo" in result.output
        assert "Done: 1 skipped, 1 failed" in result.output

    def test_exec_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path, '[repos.a]\nurl = "u"\n')
        (root / "a").mkdir()
        monkeypatch.chdir(root)

        ok = runner.invoke(app, ["exec", "true"])
        failed = runner.invoke(app, ["exec", "exit 5"])

        assert ok.exit_code == 0
        assert failed.exit_code == int(ErrorCode.OPERATION_FAILED)

    def test_update_missing_repos_is_not_a_failure(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = _workspace(tmp_path, '[repos.a]\nurl = "u"\n')
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["update", "--dry-run"])

        assert result.exit_code == 0
        assert "Done: 1 skipped" in result.output

    def test_clone_target_exists(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _workspace(tmp_path)
        (root / "lib").mkdir()
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["clone", "git@host:org/lib.git"])

        assert result.exit_code == int(ErrorCode.USER_ERROR)
        assert "Target directory 'lib' already exists" in result.output
        assert (root / CONFIG_FILE_NAME).read_text(encoding="utf-8") == "[repos]\n"


class TestLinkCommands:
    def _exposing(self, tmp_path: Path, *, conflict: bool = False) -> Path:
        root = _workspace(
            tmp_path,
            '[repos.a]\nurl = "u"\nexpose = ["shared"]\n\n[repos.b]\nurl = "u"\n'
            + ('expose = ["x/shared"]\n' if conflict else ""),
        )
        (root / "a" / "shared").mkdir(parents=True)
        (root / "b" / "x" / "shared").mkdir(parents=True)
        return root

    def test_create_status_remove(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = self._exposing(tmp_path)
        monkeypatch.chdir(root)

        created = runner.invoke(app, ["link", "create"])
        status = runner.invoke(app, ["link", "status"])
        removed = runner.invoke(app, ["link", "remove"])

        assert created.exit_code == 0
        assert "[linked]" in status.output
        assert removed.exit_code == 0
        assert not os.path.lexists(root / "shared")

    def test_conflict_exit_code(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = self._exposing(tmp_path, conflict=True)
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["link", "create"])

        assert result.exit_code == int(ErrorCode.USER_ERROR)
        assert "Use --force to overwrite with the first match" in result.output
        assert not os.path.lexists(root / "shared")

    def test_force(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = self._exposing(tmp_path, conflict=True)
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["link", "create", "--force"])

        assert result.exit_code == 0
        assert os.readlink(root / "shared") == os.path.join("a", "shared")

    def test_force_over_repo_checkout_fails(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = _workspace(tmp_path, '[repos.docs]\nurl = "u"\nexpose = ["site/docs"]\n')
        (root / "docs" / "site" / "docs").mkdir(parents=True)
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["link", "create", "--force"])

        assert result.exit_code == int(ErrorCode.OPERATION_FAILED)
        assert "Failed: docs (target is a repo checkout)" in result.output
        assert (root / "docs" / "site" / "docs").is_dir()
