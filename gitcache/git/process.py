"""Running the git binary directly, for commands whose output goes to the user."""

import codecs
import errno
import logging
import os
import pty
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import click
from git.exc import GitCommandError

from gitcache.exceptions import ExternalCommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def command_error(error: GitCommandError) -> ExternalCommandError:
    """Translate a GitPython command failure into a gitcache error."""
    command = error.command
    if isinstance(command, str):
        command = command.split()
    status = error.status if isinstance(error.status, int) else 1
    stderr = error.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    # GitPython prefixes captured stderr with "\n  stderr: '...'"
    stderr = (stderr or "").strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:") :].strip().strip("'")
    return ExternalCommandError(command, status, stderr)


def run_git(args: Sequence[str], cwd: Optional[PathLike] = None) -> int:
    """
    Run git with its output connected to ours and return its exit status.

    Args:
        args: Arguments following ``git``
        cwd: Working directory (defaults to the current directory)

    Returns:
        The exit status of the git process
    """
    command = ["git", *args]
    logger.debug(f"Running {' '.join(command)}" + (f" in {cwd}" if cwd else ""))
    try:
        result = subprocess.run(command, cwd=cwd, check=False)
    except FileNotFoundError as e:
        raise ExternalCommandError(command, 127, str(e))
    return result.returncode


def run_with_pty(
    args: Sequence[str], cwd: Optional[PathLike] = None
) -> Tuple[int, str]:
    """
    Run git attached to a pseudo-terminal, echoing and capturing its output.

    git only prints progress and status lines such as "Cloning into ..."
    when it writes to a terminal. Running it on a pty keeps that output
    visible to the user while still letting us inspect it afterwards.

    Args:
        args: Arguments following ``git``
        cwd: Working directory (defaults to the current directory)

    Returns:
        Tuple of (exit status, combined stdout/stderr text)
    """
    command = ["git", *args]
    logger.debug(f"Running {' '.join(command)} on a pty")

    master_fd, slave_fd = pty.openpty()
    try:
        process = subprocess.Popen(
            command, cwd=cwd, stdout=slave_fd, stderr=slave_fd, close_fds=True
        )
    except OSError as e:
        os.close(master_fd)
        if isinstance(e, FileNotFoundError):
            raise ExternalCommandError(command, 127, str(e))
        raise
    finally:
        os.close(slave_fd)

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    chunks: List[str] = []
    try:
        while True:
            try:
                data = os.read(master_fd, 4096)
            except OSError as e:
                # EIO signals that the child closed its end of the pty
                if e.errno != errno.EIO:
                    raise
                break
            if not data:
                break
            text = decoder.decode(data)
            chunks.append(text)
            click.echo(text, nl=False)
    finally:
        os.close(master_fd)
        returncode = process.wait()

    chunks.append(decoder.decode(b"", final=True))
    return returncode, "".join(chunks)
