"""
Pact CLI — entrypoint.

Usage:
    pact --help
    pact extension list
    pact extension install pactflow-ai
    pact <alias> [args...]
"""

from __future__ import annotations

import sys

import click

from pact_extensions import __version__
from pact_extensions.core.observability.logging_config import configure_logging
from pact_extensions.ui.cli.builtins import BUILTIN_COMMANDS
from pact_extensions.ui.cli.extension import extension


@click.group()
@click.version_option(version=__version__, prog_name="pact")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Pact CLI — contract testing tools and extensions.

    Installed extensions are called by alias: pact <alias> [args...]
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    if debug or verbose or quiet:
        configure_logging(debug=debug, verbose=verbose, quiet=quiet)


cli.add_command(extension)
for _command in BUILTIN_COMMANDS.values():
    cli.add_command(_command)


def main() -> None:
    """Console-script entry point."""
    from pact_extensions.ui.cli.dispatch import Dispatcher

    sys.exit(Dispatcher().run(sys.argv[1:]))


if __name__ == "__main__":
    main()
