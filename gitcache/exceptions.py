"""
Exception classes for gitcache.
"""

from typing import Optional, Sequence


def exit_status(returncode: int) -> int:
    """Exit status for a child status; killed by signal N gives 128 + N."""
    if returncode < 0:
        return 128 - returncode
    return returncode


class GitCacheError(Exception):
    """Base exception for all gitcache errors."""

    exit_code = 1


class CacheNotFoundError(GitCacheError):
    """Raised when no cache directory is configured or it does not exist."""

    def __init__(self, directory: Optional[str] = None, reason: str = "does not exist"):
        self.directory = directory
        if directory:
            message = f"Cache directory {directory} {reason}"
        else:
            message = "No cache directory configured"
        super().__init__(f"{message}. Run 'gitcache init' first.")


class CacheUsageError(GitCacheError):
    """Raised when a command is called with missing or invalid arguments."""

    pass


class CacheInitError(GitCacheError):
    """Raised when the cache directory cannot be created."""

    def __init__(self, directory: str, reason: str):
        self.directory = directory
        super().__init__(f"Could not create cache directory {directory}: {reason}")


class CacheAlreadyInitializedError(GitCacheError):
    """Raised when initializing a directory that already holds a repository."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Cache directory {directory} is already initialized")


class CacheLockError(GitCacheError):
    """Raised when the cache lock cannot be acquired in time."""

    def __init__(self, lock_file: str, timeout: float):
        self.lock_file = lock_file
        super().__init__(
            f"Could not acquire lock {lock_file} within {timeout:g} seconds"
        )


class SubmoduleDirNotFoundError(GitCacheError):
    """Raised when the directory of a newly added submodule cannot be found."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f"Could not determine the directory of the submodule added from {url}; "
            "objects were not dissociated from the cache"
        )


class ExternalCommandError(GitCacheError):
    """Raised when a git invocation exits with a non-zero status."""

    def __init__(
        self, command: Sequence[str], returncode: int, stderr: Optional[str] = None
    ):
        self.command = list(command)
        self.returncode = returncode
        self.exit_code = exit_status(returncode) or 1
        self.stderr = (stderr or "").strip()
        message = f"'{' '.join(self.command)}' exited with status {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)
