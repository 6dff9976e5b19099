"""
Shared git object cache.

The cache is a single bare repository. Every remote registered in it is
fetched into the same object store, so clones of related repositories can
borrow objects from it with ``git clone --reference``.

Cache Types:
    local
        Per-user cache, default location $XDG_CACHE_HOME/gitcache.
        Its path is stored with ``git config --global cache.directory``.

    global
        Shared cache, default location /var/cache/gitcache.
        Its path is stored with ``git config --system cache.directory``.
        Anything under the shared root is written with umask 002 and kept
        group-writable so several users can fetch into it.

Usage:
    store = GitConfigStore()
    init_cache("/srv/git-cache", "global", store=store)
    add_remote("linux", "https://git.kernel.org/.../linux.git", store=store)
    update_cached_repos(store=store)

Locking:
    Cache mutations (remote add/rm, fetches) run under an advisory
    FileLock on <cache>/gitcache.lock. Plain git commands passed through
    to the cache do not take the lock.
"""

import logging
import os
import shutil
import stat
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple, Union

from filelock import FileLock, Timeout
from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from gitcache.config import (
    get_local_cache_dir,
    get_lock_timeout,
    get_shared_cache_dir,
    get_shared_root,
)
from gitcache.exceptions import (
    CacheAlreadyInitializedError,
    CacheInitError,
    CacheLockError,
    CacheNotFoundError,
    CacheUsageError,
    ExternalCommandError,
    GitCacheError,
)
from gitcache.git.process import command_error, run_git
from gitcache.git.store import GLOBAL, SYSTEM, ConfigStore, GitConfigStore

logger = logging.getLogger(__name__)

# cache type (command line) -> git config scope holding its path
CACHE_TYPES = {"local": GLOBAL, "global": SYSTEM}

SYSTEM_SHARED = "system"
USER_LOCAL = "user"

LOCK_NAME = "gitcache.lock"

PathLike = Union[str, Path]


def _store(store: Optional[ConfigStore]) -> ConfigStore:
    return GitConfigStore() if store is None else store


def locate_cache(store: Optional[ConfigStore] = None) -> Path:
    """
    Find the configured cache directory.

    Args:
        store: Where the cache location is persisted (defaults to git config)

    Returns:
        Absolute path to the cache directory

    Raises:
        CacheNotFoundError: If no location is configured or it is not a directory
    """
    value = _store(store).get()
    if not value:
        raise CacheNotFoundError()
    directory = Path(value).expanduser()
    if not directory.is_dir():
        raise CacheNotFoundError(str(directory))
    return directory.absolute()


def classify_scope(path: PathLike, shared_root: Optional[PathLike] = None) -> str:
    """
    Classify a cache path as shared between users or private to one.

    Args:
        path: Cache directory
        shared_root: Root of shared caches (defaults to the configured one)

    Returns:
        "system" if the path lies under the shared root, else "user"
    """
    root = Path(shared_root) if shared_root is not None else get_shared_root()
    root = Path(os.path.abspath(root))
    candidate = Path(os.path.abspath(Path(path).expanduser()))
    if candidate == root or root in candidate.parents:
        return SYSTEM_SHARED
    return USER_LOCAL


@contextmanager
def shared_umask(path: PathLike) -> Iterator[None]:
    """Relax the umask to 002 while writing into a shared cache."""
    if classify_scope(path) != SYSTEM_SHARED:
        yield
        return
    previous = os.umask(0o002)
    try:
        yield
    finally:
        os.umask(previous)


def relax_permissions(path: PathLike) -> None:
    """Make a directory tree group-writable, with setgid directories."""
    for root, dirs, files in os.walk(path):
        mode = os.stat(root).st_mode
        os.chmod(root, stat.S_IMODE(mode) | stat.S_IRWXG | stat.S_ISGID)
        for name in files:
            file_path = os.path.join(root, name)
            if os.path.islink(file_path):
                continue
            mode = os.stat(file_path).st_mode
            os.chmod(file_path, stat.S_IMODE(mode) | stat.S_IRGRP | stat.S_IWGRP)


@contextmanager
def cache_lock(cache_dir: PathLike, timeout: Optional[float] = None) -> Iterator[None]:
    """
    Hold the advisory lock of a cache directory.

    Args:
        cache_dir: Cache directory
        timeout: Seconds to wait for the lock (defaults to the configured value)

    Raises:
        CacheLockError: If the lock could not be acquired in time
    """
    if timeout is None:
        timeout = get_lock_timeout()
    lock_file = Path(cache_dir) / LOCK_NAME
    mode = 0o664 if classify_scope(cache_dir) == SYSTEM_SHARED else 0o644
    lock = FileLock(str(lock_file), timeout=timeout, mode=mode)
    try:
        lock.acquire()
    except Timeout:
        raise CacheLockError(str(lock_file), timeout)
    try:
        yield
    finally:
        lock.release()


def open_cache(store: Optional[ConfigStore] = None) -> Repo:
    """Open the cache repository."""
    directory = locate_cache(store)
    try:
        return Repo(str(directory))
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise CacheNotFoundError(str(directory), "is not a git repository")


def default_cache_dir(cache_type: str) -> Path:
    if cache_type == "global":
        return get_shared_cache_dir()
    return get_local_cache_dir()


def init_cache(
    directory: Optional[PathLike] = None,
    cache_type: str = "local",
    store: Optional[ConfigStore] = None,
) -> Path:
    """
    Create the cache repository and remember its location.

    Args:
        directory: Where to create the cache (defaults by cache type)
        cache_type: "local" (per-user) or "global" (shared between users)
        store: Where the cache location is persisted (defaults to git config)

    Returns:
        Absolute, canonical path of the new cache

    Raises:
        CacheUsageError: For an unknown cache type
        CacheAlreadyInitializedError: If the directory already holds a repository
        CacheInitError: If the directory cannot be created
    """
    if cache_type not in CACHE_TYPES:
        raise CacheUsageError(
            f"Unknown cache type '{cache_type}', expected one of: "
            + ", ".join(CACHE_TYPES)
        )
    store = _store(store)

    if directory is None:
        path = default_cache_dir(cache_type)
    else:
        path = Path(directory).expanduser()
    path = path.resolve()

    if (path / "HEAD").exists():
        raise CacheAlreadyInitializedError(str(path))

    existed = path.is_dir()
    previous = set(os.listdir(path)) if existed else set()
    shared = classify_scope(path) == SYSTEM_SHARED
    try:
        with shared_umask(path):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CacheInitError(str(path), e.strerror or str(e))

            logger.debug(f"Creating bare repository in {path}")
            try:
                if shared:
                    Repo.init(str(path), bare=True, shared="group")
                else:
                    Repo.init(str(path), bare=True)
            except GitCommandError as e:
                raise command_error(e)

            if shared:
                try:
                    relax_permissions(path)
                except OSError as e:
                    raise CacheInitError(str(path), e.strerror or str(e))

        store.set(CACHE_TYPES[cache_type], str(path))
    except GitCacheError:
        _discard_init(path, existed, previous)
        raise

    logger.info(f"Initialized {cache_type} cache in {path}")
    return path


def _discard_init(path: Path, existed: bool, previous: Set[str]) -> None:
    """Undo a failed init so that it can be retried."""
    if not path.is_dir():
        return
    if not existed:
        logger.debug(f"Removing partially initialized {path}")
        shutil.rmtree(path)
        return
    for name in set(os.listdir(path)) - previous:
        entry = path / name
        logger.debug(f"Removing {entry}")
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def delete_cache(force: bool = False, store: Optional[ConfigStore] = None) -> List[Path]:
    """
    Remove every configured cache (system and user) and forget its location.

    The directory is removed before the configuration entry, so a failed
    removal leaves the cache registered rather than orphaned.

    Args:
        force: Confirmation flag, must be True
        store: Where the cache location is persisted (defaults to git config)

    Returns:
        List of removed cache directories
    """
    if not force:
        raise CacheUsageError(
            "Deleting the cache requires --force: gitcache delete --force"
        )
    store = _store(store)

    removed = []
    for scope in (SYSTEM, GLOBAL):
        value = store.get(scope)
        if not value:
            continue
        directory = Path(value).expanduser()
        if directory.exists():
            logger.debug(f"Removing {directory}")
            shutil.rmtree(directory)
        store.unset(scope)
        logger.info(f"Removed cache directory {directory}")
        removed.append(directory)

    if not removed:
        logger.info("No cache directory configured")
    return removed


def add_remote(name: str, url: str, store: Optional[ConfigStore] = None) -> None:
    """
    Register a remote in the cache and fetch it.

    Args:
        name: Remote name
        url: Remote URL
        store: Where the cache location is persisted (defaults to git config)

    Raises:
        CacheUsageError: If name or url is empty
        ExternalCommandError: If git fails to add or fetch the remote
    """
    if not name or not url:
        raise CacheUsageError("Both a remote name and a URL are required")

    repo = open_cache(store)
    cache_dir = repo.git_dir
    with shared_umask(cache_dir), cache_lock(cache_dir):
        try:
            repo.create_remote(name, url)
        except GitCommandError as e:
            raise command_error(e)
        logger.info(f"Fetching {name} from {url}")
        returncode = run_git(["fetch", name], cwd=cache_dir)
        if returncode != 0:
            raise ExternalCommandError(["git", "fetch", name], returncode)


def rm_remote(name: str, store: Optional[ConfigStore] = None) -> None:
    """Remove a remote from the cache."""
    if not name:
        raise CacheUsageError("A remote name is required")

    repo = open_cache(store)
    with cache_lock(repo.git_dir):
        try:
            repo.delete_remote(name)
        except GitCommandError as e:
            raise command_error(e)
    logger.debug(f"Removed remote {name}")


def show_remotes(store: Optional[ConfigStore] = None) -> List[Tuple[str, str]]:
    """
    List the remotes registered in the cache.

    Returns:
        List of (name, url) pairs
    """
    repo = open_cache(store)
    return [(remote.name, remote.url) for remote in repo.remotes]


def resolve_source(token: str, store: Optional[ConfigStore] = None) -> str:
    """
    Turn a remote name registered in the cache into its URL.

    Args:
        token: Remote name or URL
        store: Where the cache location is persisted (defaults to git config)

    Returns:
        The registered URL if token names a cache remote, else token itself
    """
    if not token:
        raise CacheUsageError("A repository URL or remote name is required")
    for name, url in show_remotes(store):
        if name == token:
            logger.debug(f"Resolved remote {token} to {url}")
            return url
    return token


def update_cached_repos(store: Optional[ConfigStore] = None) -> None:
    """
    Fetch every remote of the cache, pruning stale references.

    Raises:
        ExternalCommandError: If git fetch fails
    """
    cache_dir = locate_cache(store)
    with shared_umask(cache_dir), cache_lock(cache_dir):
        logger.info(f"Updating cache in {cache_dir}")
        returncode = run_git(["fetch", "--all", "--prune"], cwd=cache_dir)
    if returncode != 0:
        raise ExternalCommandError(["git", "fetch", "--all", "--prune"], returncode)
