"""CLI commands managing the cache repository and its remotes"""

from pathlib import Path
from typing import Optional

import click

from gitcache.cli.error_formatting import exit_on_error
from gitcache.cli.utils.logging import logger
from gitcache.cli.utils.store import get_store
from gitcache.exceptions import CacheUsageError
from gitcache.git.cache import (
    CACHE_TYPES,
    add_remote,
    delete_cache,
    init_cache,
    rm_remote,
    show_remotes,
    update_cached_repos,
)


@click.command("init")
@click.argument("directory", required=False)
@click.argument("cache_type", required=False, metavar="[TYPE]")
def init(directory: Optional[str], cache_type: Optional[str]):
    """Create the cache in DIRECTORY.

    TYPE is "local" (default, per-user) or "global" (shared between users).
    Without DIRECTORY the cache goes to ~/.cache/gitcache, or to
    /var/cache/gitcache for a global cache.

    Example:

      gitcache init /srv/git-cache global
    """
    # "gitcache init global" names a type, not a directory called "global"
    if cache_type is None and directory in CACHE_TYPES and not Path(directory).exists():
        directory, cache_type = None, directory

    with exit_on_error():
        init_cache(directory, cache_type or "local", store=get_store())


def _remove_remote(name: Optional[str], force: bool):
    if not force:
        raise CacheUsageError(
            f"Removing a remote requires --force: gitcache rm --force {name or 'NAME'}"
        )
    rm_remote(name or "", store=get_store())
    logger.info(f"Removed remote {name}")


@click.command("delete")
@click.option("--force", is_flag=True, help="Confirm the deletion.")
@click.argument("name", required=False)
def delete(force: bool, name: Optional[str]):
    """Delete the cache, or the remote NAME from it.

    Without NAME the cache directories (system and user) are removed from
    disk and forgotten.
    """
    with exit_on_error():
        if name:
            _remove_remote(name, force)
            return
        delete_cache(force, store=get_store())


@click.command("add")
@click.argument("name", required=False)
@click.argument("url", required=False)
def add(name: Optional[str], url: Optional[str]):
    """Register the remote NAME with URL in the cache and fetch it."""
    with exit_on_error():
        add_remote(name or "", url or "", store=get_store())


@click.command("rm")
@click.option("--force", is_flag=True, help="Confirm the removal.")
@click.argument("name", required=False)
def rm(force: bool, name: Optional[str]):
    """Remove the remote NAME from the cache (alias: del)."""
    with exit_on_error():
        _remove_remote(name, force)


@click.command("show")
def show():
    """List the remotes registered in the cache."""
    with exit_on_error():
        for name, url in show_remotes(store=get_store()):
            click.echo(f"{name} {url}")


@click.command("update")
def update():
    """Fetch all remotes of the cache (alias: fetch)."""
    with exit_on_error():
        update_cached_repos(store=get_store())
