"""Error formatting for CLI output."""

import sys
from contextlib import contextmanager
from typing import Iterator

from gitcache.cli.utils.logging import logger
from gitcache.exceptions import ExternalCommandError, GitCacheError


def format_error(error: GitCacheError) -> str:
    """Format a gitcache error as a one or two line message for the user.

    Example output:
        Error: 'git fetch origin' exited with status 128
          fatal: repository 'https://example.com/nope.git/' not found
    """
    if isinstance(error, ExternalCommandError):
        message = (
            f"Error: '{' '.join(error.command)}' exited with status {error.returncode}"
        )
        if error.stderr:
            message += "\n  " + error.stderr.replace("\n", "\n  ")
        return message
    return f"Error: {error}"


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Log gitcache errors and exit with the status they carry."""
    try:
        yield
    except GitCacheError as e:
        logger.debug("Command failed", exc_info=True)
        logger.error(format_error(e))
        sys.exit(e.exit_code)
