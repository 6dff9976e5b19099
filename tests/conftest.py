import io
import logging
from pathlib import Path

import pytest
from dulwich import porcelain

from gitcache.git.store import GitConfigStore, MemoryConfigStore


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("gitcache")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


# git fixtures


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Point git's global and system configuration at throwaway files."""
    config_dir = tmp_path / "gitconfig"
    config_dir.mkdir()
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config_dir / "global"))
    monkeypatch.setenv("GIT_CONFIG_SYSTEM", str(config_dir / "system"))
    monkeypatch.delenv("GIT_CONFIG_NOSYSTEM", raising=False)
    # local paths are used as submodule URLs in tests
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Test")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@test")
    return config_dir


@pytest.fixture
def git_store(git_env):
    """GitConfigStore writing to the isolated configuration files."""
    return GitConfigStore()


@pytest.fixture
def memory_store():
    return MemoryConfigStore()


def commit_file(repo_dir: Path, name: str, content: str, message: str) -> str:
    """Write a file into a repository and commit it, returning the commit sha."""
    (repo_dir / name).write_text(content)
    porcelain.add(str(repo_dir), paths=[str(repo_dir / name)])
    commit_sha = porcelain.commit(
        str(repo_dir),
        message=message.encode("utf-8"),
        author=b"Test <test@test>",
        committer=b"Test <test@test>",
    )
    return commit_sha.decode("ascii")


@pytest.fixture
def source_repo(tmp_path):
    """Create a minimal local git repo with a commit."""
    repo_dir = tmp_path / "source"
    repo_dir.mkdir()
    porcelain.init(str(repo_dir))
    commit = commit_file(repo_dir, "hello.txt", "hello", "initial commit")
    return repo_dir, commit


@pytest.fixture
def cache_dir(tmp_path, git_store):
    """An initialized local cache registered in the isolated git config."""
    from gitcache.git.cache import init_cache

    return init_cache(tmp_path / "cache", "local", store=git_store)


@pytest.fixture
def make_commit():
    return commit_file
