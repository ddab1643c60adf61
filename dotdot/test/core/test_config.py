"""Tests for dotdot.core.config module."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from dotdot.core.config import (
    CONFIG_FILE_NAME,
    ConfigError,
    RepoConfig,
    WorkspaceConfig,
    check_repo_name,
    create_empty_config,
    load_config_file,
    render_config,
    update_repo_revisions,
    upsert_repo,
    write_config,
)
from dotdot.core.result import Err, Ok

SAMPLE = """\
[repos]

[repos.lib]
url = "git@github.com:org/lib.git"
revision = "3f6251fb01dbfd13f38f011aca66d126a2ad6791"
install = "make install"
expose = ["packages/shared", "docs"]

[repos.app]
url = "https://github.com/org/app"
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / CONFIG_FILE_NAME
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_load_full_config(self, tmp_path: Path) -> None:
        result = load_config_file(_write(tmp_path, SAMPLE))

        assert isinstance(result, Ok)
        repos = result.value.repos
        assert list(repos) == ["lib", "app"]
        assert repos["lib"] == RepoConfig(
            url="git@github.com:org/lib.git",
            revision="3f6251fb01dbfd13f38f011aca66d126a2ad6791",
            install="make install",
            expose=("packages/shared", "docs"),
        )
        assert repos["app"] == RepoConfig(url="https://github.com/org/app")

    def test_empty_repos_table(self, tmp_path: Path) -> None:
        result = load_config_file(_write(tmp_path, "[repos]\n"))
        assert result == Ok(WorkspaceConfig())

    def test_unknown_keys_are_ignored(self, tmp_path: Path) -> None:
        content = '[meta]\nowner = "me"\n\n[repos.a]\nurl = "u"\nbranch = "main"\n'
        result = load_config_file(_write(tmp_path, content))
        assert isinstance(result, Ok)
        assert result.value.repos["a"] == RepoConfig(url="u")

    def test_blank_revision_is_unpinned(self, tmp_path: Path) -> None:
        result = load_config_file(_write(tmp_path, '[repos.a]\nurl = "u"\nrevision = ""\n'))
        assert isinstance(result, Ok)
        assert result.value.repos["a"].revision is None

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        result = load_config_file(path)
        assert isinstance(result, Err)
        assert result.error.path == path
        assert "not found" in result.error.message

    def test_invalid_toml_names_the_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "[repos\nbroken")
        result = load_config_file(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert str(result.error).startswith(str(path))

    def test_missing_repos_table(self, tmp_path: Path) -> None:
        result = load_config_file(_write(tmp_path, 'name = "x"\n'))
        assert isinstance(result, Err)
        assert "missing 'repos' table" in result.error.message

    @pytest.mark.parametrize(
        ("content", "fragment"),
        [
            ("repos = 1\n", "'repos' must be a table"),
            ('[repos]\na = "x"\n', "repos.a must be a table"),
            ("[repos.a]\nrevision = \"abc\"\n", "repos.a.url"),
            ('[repos.a]\nurl = "  "\n', "repos.a.url"),
            ('[repos.a]\nurl = "u"\nrevision = 1\n', "repos.a.revision must be a string"),
            ('[repos.a]\nurl = "u"\nexpose = "docs"\n', "list of strings"),
            ('[repos.a]\nurl = "u"\nexpose = ["/etc"]\n', "invalid path"),
            ('[repos.a]\nurl = "u"\nexpose = ["../up"]\n', "invalid path"),
            ('[repos."a/b"]\nurl = "u"\n', "path separators"),
        ],
    )
    def test_validation_errors(self, tmp_path: Path, content: str, fragment: str) -> None:
        result = load_config_file(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert fragment in result.error.message


class TestCheckRepoName:
    def test_plain_name(self) -> None:
        assert check_repo_name("my-repo") is None

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b"])
    def test_rejected(self, name: str) -> None:
        assert check_repo_name(name) is not None


class TestRenderConfig:
    """Tests for render_config()."""

    def test_empty(self) -> None:
        assert render_config(WorkspaceConfig()) == "[repos]\n"

    def test_field_order_and_optional_fields(self) -> None:
        config = WorkspaceConfig(
            repos={
                "b": RepoConfig(url="u-b", revision="abc", expose=("x/y",)),
                "a": RepoConfig(url="u-a", install="npm ci"),
            }
        )
        assert render_config(config) == (
            "[repos]\n"
            "\n"
            "[repos.b]\n"
            'url = "u-b"\n'
            'revision = "abc"\n'
            'expose = ["x/y"]\n'
            "\n"
            "[repos.a]\n"
            'url = "u-a"\n'
            'install = "npm ci"\n'
        )

    def test_quotes_keys_and_escapes_values(self) -> None:
        config = WorkspaceConfig(
            repos={"my.repo": RepoConfig(url='say "hi"\\', install="echo ünï")}
        )
        text = render_config(config)
        assert '[repos."my.repo"]' in text

        parsed = tomllib.loads(text)
        assert parsed["repos"]["my.repo"]["url"] == 'say "hi"\\'
        assert parsed["repos"]["my.repo"]["install"] == "echo ünï"

    def test_rendered_text_loads_back(self, tmp_path: Path) -> None:
        original = load_config_file(_write(tmp_path, SAMPLE))
        assert isinstance(original, Ok)

        other = tmp_path / "other"
        other.mkdir()
        path = other / CONFIG_FILE_NAME
        path.write_text(render_config(original.value), encoding="utf-8")

        assert load_config_file(path) == original


class TestModel:
    def test_with_revision_replaces_only_that_repo(self) -> None:
        config = WorkspaceConfig(
            repos={"a": RepoConfig(url="ua", revision="old"), "b": RepoConfig(url="ub")}
        )

        updated = config.with_revision("a", "new")

        assert updated.repos["a"] == RepoConfig(url="ua", revision="new")
        assert updated.repos["b"] is config.repos["b"]
        assert config.repos["a"].revision == "old"

    def test_with_revision_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            WorkspaceConfig().with_revision("missing", "abc")


class TestWriters:
    """Tests for the read-modify-write helpers."""

    def test_write_config_replaces_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        result = write_config(path, WorkspaceConfig())
        assert result == Ok(None)
        assert path.read_text(encoding="utf-8") == "[repos]\n"

    def test_write_config_reports_os_errors(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        result = write_config(blocker / CONFIG_FILE_NAME, WorkspaceConfig())
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "Failed to write" in result.error.message

    def test_upsert_appends_new_repo(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        existing = load_config_file(path).unwrap()
        assert existing is not None

        result = upsert_repo(path, "new", RepoConfig(url="u-new", revision="r1"), existing)

        assert isinstance(result, Ok)
        reloaded = load_config_file(path).unwrap()
        assert reloaded is not None
        assert list(reloaded.repos) == ["lib", "app", "new"]
        assert reloaded.repos["new"].revision == "r1"

    def test_upsert_replaces_in_place(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        existing = load_config_file(path).unwrap()
        assert existing is not None

        upsert_repo(path, "lib", RepoConfig(url="moved"), existing)

        reloaded = load_config_file(path).unwrap()
        assert reloaded is not None
        assert list(reloaded.repos) == ["lib", "app"]
        assert reloaded.repos["lib"] == RepoConfig(url="moved")

    def test_update_revision_keeps_other_fields(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        existing = load_config_file(path).unwrap()
        assert existing is not None

        result = update_repo_revisions(path, {"lib": "ffff"}, existing)

        assert isinstance(result, Ok)
        lib = result.value.repos["lib"]
        assert lib.revision == "ffff"
        assert lib.install == "make install"
        assert lib.expose == ("packages/shared", "docs")

    def test_update_several_revisions_in_one_write(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        existing = load_config_file(path).unwrap()
        assert existing is not None

        result = update_repo_revisions(path, {"app": "a1", "lib": "b2"}, existing)

        assert isinstance(result, Ok)
        reloaded = load_config_file(path).unwrap()
        assert reloaded is not None
        assert list(reloaded.repos) == ["lib", "app"]
        assert reloaded.repos["lib"].revision == "b2"
        assert reloaded.repos["app"] == RepoConfig(url="https://github.com/org/app", revision="a1")

    def test_update_revision_unknown_repo(self, tmp_path: Path) -> None:
        path = _write(tmp_path, SAMPLE)
        before = path.read_text(encoding="utf-8")
        existing = load_config_file(path).unwrap()
        assert existing is not None

        result = update_repo_revisions(path, {"lib": "ffff", "missing": "eeee"}, existing)

        assert isinstance(result, Err)
        assert path.read_text(encoding="utf-8") == before

    def test_create_empty_config(self, tmp_path: Path) -> None:
        result = create_empty_config(tmp_path)
        assert result == Ok(tmp_path / CONFIG_FILE_NAME)
        assert load_config_file(tmp_path / CONFIG_FILE_NAME) == Ok(WorkspaceConfig())
