from typing import Optional

import click

from gitcache.git.store import ConfigStore, GitConfigStore


def get_store(ctx: Optional[click.Context] = None) -> ConfigStore:
    """
    Return the configuration store for the current invocation.

    A store placed in the root context object under "store" (as tests do
    with ``CliRunner().invoke(cli, args, obj={"store": ...})``) takes
    precedence over the git-config backed default.
    """
    if ctx is None:
        ctx = click.get_current_context()
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    store = root_ctx.obj.get("store")
    if store is None:
        store = GitConfigStore()
        root_ctx.obj["store"] = store
    return store
