"""
Git operations for gitcache.

The cache itself lives in ``cache`` (location, remotes, refresh, locking);
``clone`` builds on it to create clones and submodules that borrow objects
from the cache; ``store`` persists the cache location.
"""

from .cache import (
    add_remote,
    cache_lock,
    classify_scope,
    delete_cache,
    init_cache,
    locate_cache,
    resolve_source,
    rm_remote,
    show_remotes,
    update_cached_repos,
)
from .clone import clone_repo, passthrough, submodule_add
from .store import ConfigStore, GitConfigStore, MemoryConfigStore

__all__ = [
    "add_remote",
    "cache_lock",
    "classify_scope",
    "delete_cache",
    "init_cache",
    "locate_cache",
    "resolve_source",
    "rm_remote",
    "show_remotes",
    "update_cached_repos",
    "clone_repo",
    "passthrough",
    "submodule_add",
    "ConfigStore",
    "GitConfigStore",
    "MemoryConfigStore",
]
