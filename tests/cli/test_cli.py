"""Tests for the gitcache command line."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gitcache import __version__
from gitcache.cli.main import cli
from gitcache.git.store import GLOBAL, SYSTEM, MemoryConfigStore


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def invoke(store, git_env):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, list(args), obj={"store": store})

    return _invoke


@pytest.fixture
def initialized(tmp_path, invoke, store):
    result = invoke("init", str(tmp_path / "c"), "local")
    assert result.exit_code == 0, result.output
    return tmp_path / "c"


class TestInit:
    def test_init_local(self, tmp_path, invoke, store):
        result = invoke("init", str(tmp_path / "c"), "local")

        assert result.exit_code == 0
        assert store.get(GLOBAL) == str((tmp_path / "c").resolve())
        assert (tmp_path / "c" / "HEAD").exists()

    def test_init_global(self, tmp_path, invoke, store):
        result = invoke("init", str(tmp_path / "c"), "global")

        assert result.exit_code == 0
        assert store.get(SYSTEM) == str((tmp_path / "c").resolve())
        assert store.get(GLOBAL) is None

    def test_type_only(self, tmp_path, invoke, store, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(
            "gitcache.git.cache.get_shared_cache_dir", lambda: tmp_path / "shared"
        )

        result = invoke("init", "global")

        assert result.exit_code == 0
        assert store.get(SYSTEM) == str((tmp_path / "shared").resolve())
        assert not (tmp_path / "global").exists()

    def test_twice(self, initialized, invoke, caplog):
        result = invoke("init", str(initialized), "local")

        assert result.exit_code == 1
        assert "already initialized" in caplog.text
        assert (initialized / "HEAD").exists()

    def test_unknown_type(self, tmp_path, invoke, store, caplog):
        result = invoke("init", str(tmp_path / "c"), "everywhere")

        assert result.exit_code == 1
        assert "Unknown cache type" in caplog.text
        assert store.get() is None


class TestDelete:
    def test_requires_force(self, initialized, invoke, store, caplog):
        result = invoke("delete")

        assert result.exit_code == 1
        assert "--force" in caplog.text
        assert initialized.exists()
        assert store.get(GLOBAL) == str(initialized.resolve())

    def test_delete(self, initialized, invoke, store):
        result = invoke("delete", "--force")

        assert result.exit_code == 0
        assert not initialized.exists()
        assert store.get() is None

        result = invoke("show")
        assert result.exit_code == 1


class TestRemotes:
    def test_scenario(self, initialized, invoke, source_repo):
        repo_dir, _ = source_repo

        result = invoke("add", "origin", str(repo_dir))
        assert result.exit_code == 0, result.output

        result = invoke("show")
        assert result.exit_code == 0
        assert f"origin {repo_dir}" in result.output.splitlines()

        result = invoke("rm", "--force", "origin")
        assert result.exit_code == 0

        result = invoke("show")
        assert f"origin {repo_dir}" not in result.output

    def test_no_arguments_shows_remotes(self, initialized, invoke, source_repo):
        repo_dir, _ = source_repo
        invoke("add", "origin", str(repo_dir))

        result = invoke()

        assert result.exit_code == 0
        assert f"origin {repo_dir}" in result.output

    def test_add_requires_url(self, initialized, invoke, caplog):
        result = invoke("add", "origin")

        assert result.exit_code == 1
        assert "URL" in caplog.text

    @pytest.mark.parametrize("command", ["rm", "del", "delete"])
    def test_remove_requires_force(self, initialized, invoke, source_repo, command):
        repo_dir, _ = source_repo
        invoke("add", "origin", str(repo_dir))

        result = invoke(command, "origin")

        assert result.exit_code == 1
        assert "origin" in invoke("show").output

    @pytest.mark.parametrize("command", ["del", "delete"])
    def test_remove_aliases(self, initialized, invoke, source_repo, command):
        repo_dir, _ = source_repo
        invoke("add", "origin", str(repo_dir))

        result = invoke(command, "--force", "origin")

        assert result.exit_code == 0
        assert "origin" not in invoke("show").output
        assert initialized.exists()

    @pytest.mark.parametrize("command", ["update", "fetch"])
    def test_update(self, initialized, invoke, source_repo, command):
        repo_dir, _ = source_repo
        invoke("add", "origin", str(repo_dir))

        assert invoke(command).exit_code == 0

    def test_missing_cache(self, invoke, caplog):
        result = invoke("show")

        assert result.exit_code == 1
        assert "gitcache init" in caplog.text


class TestClone:
    def test_dissociates_by_default(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=0) as run_git:
            result = invoke("clone", "https://example.com/r.git", "-b", "main", "dir")

        assert result.exit_code == 0
        args = run_git.call_args[0][0]
        assert args[:2] == ["clone", "--reference"]
        assert "--dissociate" in args
        assert args[-4:] == ["https://example.com/r.git", "-b", "main", "dir"]

    def test_dependent(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=0) as run_git:
            result = invoke("clone", "--dependent", "https://example.com/r.git")

        assert result.exit_code == 0
        assert "--dissociate" not in run_git.call_args[0][0]

    def test_exit_status_is_propagated(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=128):
            result = invoke("clone", "https://example.com/r.git")

        assert result.exit_code == 128

    def test_signal_exit_status(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=-15):
            result = invoke("clone", "https://example.com/r.git")

        assert result.exit_code == 143

    def test_requires_source(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git") as run_git:
            result = invoke("clone")

        assert result.exit_code == 1
        run_git.assert_not_called()

    def test_submodule_add(self, initialized, invoke):
        with patch("gitcache.cli.clone.submodule_add", return_value=0) as add:
            result = invoke("submodule", "add", "--dependent", "https://e.com/s.git", "s")

        assert result.exit_code == 0
        args, kwargs = add.call_args
        assert args == ("https://e.com/s.git", ("s",))
        assert kwargs["dependent"] is True


class TestPassthrough:
    def test_unknown_command_runs_in_cache(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=0) as run_git:
            result = invoke("log", "--oneline", "-n", "3")

        assert result.exit_code == 0
        run_git.assert_called_once_with(
            ["log", "--oneline", "-n", "3"], cwd=initialized.resolve()
        )

    def test_exit_status_is_propagated(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=2):
            assert invoke("gc").exit_code == 2

    def test_leading_option_runs_in_cache(self, initialized, invoke):
        with patch("gitcache.git.clone.run_git", return_value=0) as run_git:
            result = invoke("--no-pager", "log", "-n", "1")

        assert result.exit_code == 0
        run_git.assert_called_once_with(
            ["--no-pager", "log", "-n", "1"], cwd=initialized.resolve()
        )

    @pytest.mark.parametrize(
        "args",
        [["status"], ["foreach", "--recursive", "git log -1"], ["--quiet", "sync"]],
    )
    def test_submodule_commands_run_in_cache(self, initialized, invoke, args):
        with patch("gitcache.git.clone.run_git", return_value=0) as run_git:
            result = invoke("submodule", *args)

        assert result.exit_code == 0, result.output
        run_git.assert_called_once_with(
            ["submodule", *args], cwd=initialized.resolve()
        )

    def test_submodule_add_is_not_forwarded(self, initialized, invoke):
        with patch("gitcache.cli.clone.submodule_add", return_value=0) as add, patch(
            "gitcache.git.clone.run_git"
        ) as run_git:
            invoke("submodule", "add", "https://e.com/s.git")

        add.assert_called_once()
        run_git.assert_not_called()

    def test_real_git(self, initialized, invoke):
        assert invoke("rev-parse", "--is-bare-repository").exit_code == 0


class TestHelp:
    @pytest.mark.parametrize("flag", ["help", "-help", "--help", "-h"])
    def test_help(self, invoke, flag):
        result = invoke(flag)

        assert result.exit_code == 0
        assert "Commands:" in result.output
        assert "submodule add" in result.output

    def test_version(self, invoke):
        result = invoke("--version")

        assert result.exit_code == 0
        assert __version__ in result.output
