"""
Storage for the persisted cache location.

The cache directory is remembered as the git configuration key
``cache.directory``, written either at ``system`` scope (shared caches) or
at ``global`` scope (per-user caches). Operations receive a store object
instead of reading git configuration directly, so tests can hand them an
isolated ``MemoryConfigStore``.
"""

import logging
from typing import Dict, Optional

from git import Git
from git.exc import GitCommandError

from gitcache.git.process import command_error

logger = logging.getLogger(__name__)

CACHE_KEY = "cache.directory"

SYSTEM = "system"
GLOBAL = "global"
SCOPES = (SYSTEM, GLOBAL)

# git exits with 1 from --get when the key is missing and 5 from --unset
_KEY_MISSING = 1
_NOTHING_TO_UNSET = 5


class ConfigStore:
    """Read and write the cache location at named scopes."""

    def get(self, scope: Optional[str] = None) -> Optional[str]:
        """Return the value at ``scope``, or the effective layered value if None."""
        raise NotImplementedError

    def set(self, scope: str, value: str) -> None:
        raise NotImplementedError

    def unset(self, scope: str) -> None:
        raise NotImplementedError


def _check_scope(scope: str) -> None:
    if scope not in SCOPES:
        raise ValueError(f"Unknown configuration scope: {scope}")


class GitConfigStore(ConfigStore):
    """ConfigStore backed by ``git config``."""

    def __init__(self, key: str = CACHE_KEY):
        self.key = key
        self.git = Git()

    def get(self, scope: Optional[str] = None) -> Optional[str]:
        args = ["--get", self.key]
        if scope is not None:
            _check_scope(scope)
            args.insert(0, f"--{scope}")
        try:
            value = self.git.config(*args)
        except GitCommandError as e:
            if e.status == _KEY_MISSING:
                return None
            raise command_error(e)
        return value.strip() or None

    def set(self, scope: str, value: str) -> None:
        _check_scope(scope)
        logger.debug(f"Setting {self.key}={value} at {scope} scope")
        try:
            self.git.config(f"--{scope}", self.key, value)
        except GitCommandError as e:
            raise command_error(e)

    def unset(self, scope: str) -> None:
        _check_scope(scope)
        logger.debug(f"Unsetting {self.key} at {scope} scope")
        try:
            self.git.config(f"--{scope}", "--unset", self.key)
        except GitCommandError as e:
            if e.status == _NOTHING_TO_UNSET:
                return
            raise command_error(e)


class MemoryConfigStore(ConfigStore):
    """In-memory ConfigStore; ``global`` overrides ``system`` like git does."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(values or {})

    def get(self, scope: Optional[str] = None) -> Optional[str]:
        if scope is None:
            return self.values.get(GLOBAL) or self.values.get(SYSTEM)
        _check_scope(scope)
        return self.values.get(scope)

    def set(self, scope: str, value: str) -> None:
        _check_scope(scope)
        self.values[scope] = value

    def unset(self, scope: str) -> None:
        _check_scope(scope)
        self.values.pop(scope, None)
