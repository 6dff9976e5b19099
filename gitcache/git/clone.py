import logging
import os
import re
from pathlib import Path
from typing import Optional, Sequence, Set

from git import Git, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from gitcache.exceptions import SubmoduleDirNotFoundError
from gitcache.git.cache import PathLike, locate_cache, resolve_source
from gitcache.git.process import command_error, run_git, run_with_pty
from gitcache.git.store import ConfigStore

logger = logging.getLogger(__name__)

CLONING_INTO = re.compile(r"Cloning into '([^']+)'")


def clone_args(cache_dir: PathLike, url: str, args: Sequence[str], dependent: bool):
    """Arguments for ``git clone`` borrowing objects from the cache."""
    command = ["clone", "--reference", str(cache_dir)]
    if not dependent:
        command.append("--dissociate")
    return command + [url, *args]


def clone_repo(
    source: str,
    args: Sequence[str] = (),
    dependent: bool = False,
    store: Optional[ConfigStore] = None,
) -> int:
    """
    Clone a repository using the cache as reference.

    Unless ``dependent`` is set the clone is dissociated, i.e. it copies the
    borrowed objects and keeps working if the cache is deleted.

    Args:
        source: URL, or the name of a remote registered in the cache
        args: Extra ``git clone`` arguments (target directory, --branch, ...)
        dependent: Keep referencing the cache objects instead of copying them
        store: Where the cache location is persisted (defaults to git config)

    Returns:
        Exit status of git clone
    """
    cache_dir = locate_cache(store)
    url = resolve_source(source, store)
    return run_git(clone_args(cache_dir, url, args, dependent))


def _superproject(cwd: Optional[PathLike]) -> Optional[Repo]:
    try:
        return Repo(str(cwd or os.getcwd()), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None


def submodule_paths(repo: Optional[Repo]) -> Set[str]:
    """Paths of the submodules declared in the .gitmodules of a repository."""
    if repo is None or repo.working_tree_dir is None:
        return set()
    gitmodules = os.path.join(repo.working_tree_dir, ".gitmodules")
    if not os.path.exists(gitmodules):
        return set()
    try:
        output = repo.git.config(
            "-f", gitmodules, "--get-regexp", r"^submodule\..*\.path$"
        )
    except GitCommandError as e:
        if e.status == 1:
            return set()
        raise command_error(e)

    paths = set()
    for line in output.splitlines():
        _, _, path = line.partition(" ")
        if path:
            paths.add(path.strip())
    return paths


def find_submodule_dir(
    before: Set[str],
    after: Set[str],
    output: str,
    toplevel: Optional[PathLike],
    cwd: PathLike,
) -> Optional[Path]:
    """
    Find the directory of a submodule that was just added.

    The .gitmodules entries before and after the add are compared first.
    The "Cloning into '<dir>'" line printed by git is only used when that
    comparison is inconclusive.
    """
    added = sorted(after - before)
    if toplevel is not None and len(added) == 1:
        candidate = Path(toplevel) / added[0]
        if candidate.is_dir():
            return candidate

    match = CLONING_INTO.search(output)
    if match:
        candidate = Path(cwd) / match.group(1)
        if candidate.is_dir():
            logger.debug(f"Found submodule directory {candidate} in git output")
            return candidate
    return None


def dissociate(path: PathLike) -> None:
    """
    Make a repository independent of the repositories it borrows objects from.

    Repacks every reachable object (including borrowed ones) into the
    repository itself, then removes its alternates file.
    """
    g = Git(str(path))
    try:
        logger.info(f"Repacking {path}")
        g.repack("-a", "-d")
        alternates = g.rev_parse("--git-path", "objects/info/alternates")
    except GitCommandError as e:
        raise command_error(e)

    alternates_path = Path(path) / alternates
    if alternates_path.exists():
        logger.debug(f"Removing {alternates_path}")
        alternates_path.unlink()


def submodule_add(
    source: str,
    args: Sequence[str] = (),
    dependent: bool = False,
    store: Optional[ConfigStore] = None,
    cwd: Optional[PathLike] = None,
) -> int:
    """
    Add a submodule using the cache as reference.

    ``git submodule add`` has no --dissociate option, so a dissociated
    submodule is obtained by repacking it and deleting its alternates file
    once it has been cloned.

    Args:
        source: URL, or the name of a remote registered in the cache
        args: Extra ``git submodule add`` arguments (path, --branch, ...)
        dependent: Keep referencing the cache objects instead of copying them
        store: Where the cache location is persisted (defaults to git config)
        cwd: Superproject directory (defaults to the current directory)

    Returns:
        Exit status of git submodule add

    Raises:
        SubmoduleDirNotFoundError: If the new submodule cannot be located
            for dissociation
    """
    cache_dir = locate_cache(store)
    url = resolve_source(source, store)
    workdir = Path(cwd) if cwd is not None else Path.cwd()

    superproject = _superproject(workdir)
    before = submodule_paths(superproject)

    returncode, output = run_with_pty(
        ["submodule", "add", "--reference", str(cache_dir), url, *args], cwd=workdir
    )
    if returncode != 0 or dependent:
        return returncode

    if superproject is None:
        superproject = _superproject(workdir)
    after = submodule_paths(superproject)
    toplevel = superproject.working_tree_dir if superproject is not None else None

    submodule_dir = find_submodule_dir(before, after, output, toplevel, workdir)
    if submodule_dir is None:
        raise SubmoduleDirNotFoundError(url)

    dissociate(submodule_dir)
    return 0


def passthrough(args: Sequence[str], store: Optional[ConfigStore] = None) -> int:
    """Run an arbitrary git command inside the cache directory."""
    cache_dir = locate_cache(store)
    return run_git(list(args), cwd=cache_dir)
