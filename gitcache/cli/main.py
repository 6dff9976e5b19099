"""gitcache CLI"""

import click

from gitcache import __version__
from gitcache.cli.cache import add, delete, init, rm, show, update
from gitcache.cli.clone import ForwardingGroup, clone, submodule

from .debug import add_debug_option

ALIASES = {"del": "rm", "fetch": "update"}


def print_help(ctx: click.Context):
    """Show every command and sub-command with its short help"""
    root = ctx.find_root()
    main_cli = root.command

    click.echo("Usage: gitcache [OPTIONS] COMMAND [ARGS]...")
    click.echo("")
    click.echo("  Shared cache of git objects for faster clones.")
    click.echo("")
    click.echo("Options:")
    click.echo("  --debug / --no-debug  Enable debug mode")
    click.echo("  --version             Show the version and exit.")
    click.echo("  -h, --help            Show this message and exit.")
    click.echo("")
    click.echo("Commands:")

    for name, command in main_cli.commands.items():
        if command.hidden:
            continue
        click.echo(f"  {name:<14} {command.get_short_help_str(50)}")

        if hasattr(command, "commands"):
            for subname, subcommand in command.commands.items():
                click.echo(
                    f"    {name} {subname:<8} {subcommand.get_short_help_str(45)}"
                )

    click.echo("")
    click.echo("Aliases: " + ", ".join(f"{a} -> {c}" for a, c in ALIASES.items()))
    click.echo("Without a command the cache remotes are shown; any other command or")
    click.echo("option is run as 'git COMMAND [ARGS]...' inside the cache directory,")
    click.echo("and 'gitcache submodule COMMAND' as 'git submodule COMMAND'.")


def format_recursive_help(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    print_help(ctx)
    ctx.exit()


class CacheGroup(ForwardingGroup):
    """Root group: aliases, "-help", and git for anything it does not know."""

    def parse_args(self, ctx, args):
        # "-help" would otherwise be read as the short options -h -e -l -p
        if args and args[0] == "-help":
            args = ["help", *args[1:]]
        return super().parse_args(ctx, args)

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, ALIASES.get(cmd_name, cmd_name))


@click.group(cls=CacheGroup, invoke_without_command=True, add_help_option=False)
@click.version_option(__version__, prog_name="gitcache")
@click.option(
    "--help",
    "-h",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=format_recursive_help,
    help="Show this message and exit.",
)
@click.pass_context
def cli(ctx):
    """
    Shared cache of git objects for faster clones.
    """
    ctx.ensure_object(dict)
    if ctx.invoked_subcommand is None:
        ctx.invoke(show)


@click.command("help")
@click.pass_context
def help_command(ctx):
    """Show this message and exit."""
    print_help(ctx)


# Add subcommands to the CLI
cli.add_command(add_debug_option(init))
cli.add_command(add_debug_option(delete))
cli.add_command(add_debug_option(add))
cli.add_command(add_debug_option(rm))
cli.add_command(add_debug_option(show))
cli.add_command(add_debug_option(update))
cli.add_command(add_debug_option(clone))
cli.add_command(add_debug_option(submodule))
cli.add_command(help_command)

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
