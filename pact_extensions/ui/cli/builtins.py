"""
Built-in host commands.

Each forwards its arguments untouched to the matching pact tool
executable found on PATH, and exits with that tool's exit code.
"""

from __future__ import annotations

import shutil

import click

from pact_extensions.core.errors import FilesystemError, ToolNotFoundError
from pact_extensions.core.services.extensions.execution.process import ProcessLauncher

# command -> (candidate executables, leading args)
HOST_TOOLS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "broker": (("pact-broker-cli", "pact-broker"), ()),
    "pactflow": (("pact-broker-cli",), ("pactflow",)),
    "mock": (("pact_mock_server_cli", "pact-mock-server"), ()),
    "verifier": (("pact_verifier_cli", "pact-verifier"), ()),
    "stub": (("pact-stub-server",), ()),
    "plugin": (("pact-plugin-cli",), ()),
}

_HELP = {
    "broker": "Interact with a Pact Broker.",
    "pactflow": "Interact with PactFlow.",
    "mock": "Run the Pact mock server.",
    "verifier": "Verify a provider against pacts.",
    "stub": "Run the Pact stub server.",
    "plugin": "Manage Pact plugins.",
}

PASSTHROUGH = dict(
    ignore_unknown_options=True,
    allow_extra_args=True,
    help_option_names=[],
)


def find_tool(command: str) -> list[str]:
    """Command prefix (executable + leading args) for a host command.

    Raises:
        ToolNotFoundError: None of the candidate executables is on PATH.
    """
    candidates, prefix = HOST_TOOLS[command]
    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            return [path, *prefix]
    raise ToolNotFoundError(command, list(candidates))


def _passthrough(command: str) -> click.Command:
    @click.command(command, context_settings=PASSTHROUGH, help=_HELP[command])
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_context
    def _cmd(ctx: click.Context, args: tuple[str, ...]) -> None:
        cmd = find_tool(command) + list(args)
        launcher = ctx.ensure_object(dict).get("launcher") or ProcessLauncher()
        try:
            code = launcher.run(cmd)
        except OSError as e:
            raise FilesystemError(cmd[0], f"Cannot launch {command} ({e.strerror or e})") from e
        ctx.exit(code)

    return _cmd


BUILTIN_COMMANDS = {name: _passthrough(name) for name in HOST_TOOLS}
