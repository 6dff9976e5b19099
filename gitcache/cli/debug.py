import click

from .utils.logging import configure_logging


def _debug_option() -> click.Option:
    return click.Option(
        ["--debug/--no-debug"],
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Enable debug mode",
    )


def add_debug_option(cmd: click.Command) -> click.Command:
    """Add a --debug/--no-debug option to a command or group"""
    if not any(param.name == "debug" for param in cmd.params):
        cmd.params.insert(0, _debug_option())
    return cmd


def _set_debug(ctx: click.Context, param: click.Parameter, value: bool) -> bool:
    """Callback for the debug flag.

    Any level may switch debug on; only the root command may switch it off,
    so ``gitcache --debug show`` stays in debug mode.
    """
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)

    if "DEBUG" not in root_ctx.obj:
        root_ctx.obj["DEBUG"] = False

    if value is True or ctx.parent is None:
        root_ctx.obj["DEBUG"] = value

    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]
