"""CLI commands delegating to git with the cache as reference"""

import sys
from typing import Optional, Tuple

import click

from gitcache.cli.error_formatting import exit_on_error
from gitcache.cli.utils.store import get_store
from gitcache.exceptions import CacheUsageError, exit_status
from gitcache.git import clone_repo
from gitcache.git import passthrough as git_passthrough
from gitcache.git import submodule_add

FORWARDING = {"ignore_unknown_options": True}


def _exit_with(returncode: int):
    if returncode != 0:
        sys.exit(exit_status(returncode))


def _require_source(source: Optional[str]) -> str:
    if not source:
        raise CacheUsageError("A repository URL or cache remote name is required")
    return source


class ForwardingGroup(click.Group):
    """Group running unknown commands and options as git inside the cache.

    ``git_prefix`` is put in front of the forwarded arguments, so the
    ``submodule`` group turns ``status`` into ``git submodule status``.
    """

    git_prefix: Tuple[str, ...] = ()

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("context_settings", dict(FORWARDING))
        super().__init__(*args, **kwargs)

    def resolve_command(self, ctx, args):
        if self.get_command(ctx, args[0]) is None:
            return passthrough.name, passthrough, [*self.git_prefix, *args]
        return super().resolve_command(ctx, args)


class SubmoduleGroup(ForwardingGroup):
    git_prefix = ("submodule",)


@click.command("clone", context_settings=FORWARDING)
@click.option(
    "--dependent",
    is_flag=True,
    help="Keep using the cache objects instead of copying them.",
)
@click.argument("source", required=False, metavar="URL|NAME")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def clone(dependent: bool, source: Optional[str], args: Tuple[str, ...]):
    """Clone a repository using the cache as reference.

    Remaining arguments are passed to git clone unchanged.

    Example:

      gitcache clone linux -b master ~/src/linux
    """
    with exit_on_error():
        returncode = clone_repo(
            _require_source(source), args, dependent=dependent, store=get_store()
        )
    _exit_with(returncode)


@click.group("submodule", cls=SubmoduleGroup)
def submodule():
    """Manage submodules using the cache as reference.

    Sub-commands other than add run as git submodule inside the cache.
    """
    pass


@submodule.command("add", context_settings=FORWARDING)
@click.option(
    "--dependent",
    is_flag=True,
    help="Keep using the cache objects instead of copying them.",
)
@click.argument("source", required=False, metavar="URL|NAME")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def add(dependent: bool, source: Optional[str], args: Tuple[str, ...]):
    """Add a submodule using the cache as reference.

    Remaining arguments are passed to git submodule add unchanged.
    """
    with exit_on_error():
        returncode = submodule_add(
            _require_source(source), args, dependent=dependent, store=get_store()
        )
    _exit_with(returncode)


@click.command(
    "passthrough",
    hidden=True,
    add_help_option=False,
    context_settings=FORWARDING,
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def passthrough(args: Tuple[str, ...]):
    """Run a git command inside the cache directory."""
    with exit_on_error():
        returncode = git_passthrough(args, store=get_store())
    _exit_with(returncode)
