"""
CLI commands for extension management.

Thin wrappers over ``pact_extensions.core.services.extensions``.
Domain errors are not caught here; the dispatcher reports them.
"""

from __future__ import annotations

import json
import sys

import click

from pact_extensions.core.services.extensions.resolver.versions import LATEST
from pact_extensions.core.services.extensions.session import ExtensionSession


def _session(ctx: click.Context) -> ExtensionSession:
    """The invocation's session, created on first use."""
    obj = ctx.ensure_object(dict)
    session = obj.get("session")
    if session is None:
        factory = obj.get("session_factory") or ExtensionSession.open
        session = factory()
        obj["session"] = session
    return session


@click.group()
def extension() -> None:
    """Extensions — list, install, update, uninstall, env."""


# ── Observe ─────────────────────────────────────────────────────


@extension.command("list")
@click.option("--installed", "installed_only", is_flag=True, help="Show only installed extensions.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, installed_only: bool, as_json: bool) -> None:
    """List available and installed extensions."""
    from pact_extensions.core.use_cases.listing import STATUS_MISSING, STATUS_UPDATE, list_extensions

    result = list_extensions(_session(ctx), installed_only=installed_only)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.rows:
        click.secho("⚠️  No extensions are currently installed.", fg="yellow")
        click.echo("   Use 'pact extension install <name>' to install one.")
        return

    headers = ("Name", "Type", "Installed", "Latest", "Status")
    table = [
        (
            row.name,
            row.kind,
            row.installed_version or "-",
            row.latest_version or "unknown",
            row.status,
        )
        for row in result.rows
    ]
    widths = [max(len(h), *(len(r[i]) for r in table)) for i, h in enumerate(headers)]

    click.secho(f"📦 Extensions ({result.platform}):", fg="cyan", bold=True)
    click.echo("   " + "  ".join(h.ljust(w) for h, w in zip(headers, widths)))
    click.echo("   " + "  ".join("─" * w for w in widths))
    for row, cells in zip(result.rows, table):
        color = {STATUS_MISSING: "white", STATUS_UPDATE: "yellow"}.get(row.status, "green")
        line = "  ".join(c.ljust(w) for c, w in zip(cells[:-1], widths))
        click.echo(f"   {line}  ", nl=False)
        click.secho(cells[-1], fg=color)
    click.echo()


@extension.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def env(ctx: click.Context, as_json: bool) -> None:
    """Show the extension storage layout and detected platform."""
    from pact_extensions.core.use_cases.environment import describe_environment

    info = describe_environment(_session(ctx))

    if as_json:
        click.echo(json.dumps(info.to_dict(), indent=2))
        return

    source = "PACT_CLI_EXTENSIONS_HOME" if info.root_overridden else "default"
    click.secho("🧩 Extension environment:", fg="cyan", bold=True)
    click.echo(f"   Storage root: {info.storage_root} ({source})")
    click.echo(f"   Manifest:     {info.manifest_path}")
    click.echo(f"   Aliases:      {info.bin_dir}")
    click.echo(f"   Platform:     {info.platform}")
    click.echo(f"   Installed:    {info.installed}")
    if not info.bin_on_path:
        click.echo()
        click.secho("   ℹ️  Add the alias directory to your PATH to call extensions directly:", fg="yellow")
        click.echo(f'   export PATH="{info.bin_dir}:$PATH"')
    click.echo()


# ── Act ─────────────────────────────────────────────────────────


@extension.command()
@click.argument("name", required=False)
@click.option("--version", "version", default=LATEST, show_default=True, help="Exact version to install.")
@click.option("--force", is_flag=True, help="Reinstall over an existing installation.")
@click.option("--all", "install_all", is_flag=True, help="Install every available extension.")
@click.pass_context
def install(ctx: click.Context, name: str | None, version: str, force: bool, install_all: bool) -> None:
    """Install an extension."""
    session = _session(ctx)

    if install_all:
        records = session.manager.install_all(version, force=force)
        if not records:
            click.secho("✅ All extensions already installed", fg="green")
        for record in records:
            click.secho(f"✅ Installed {record.name} {record.version}", fg="green")
        return

    if not name:
        raise click.UsageError("Please specify an extension name or use --all.")

    descriptor = session.manager.descriptor(name)
    click.echo(f"🚀 Installing {name} ({version})...")
    record = session.manager.install(descriptor, version, force=force)
    click.secho(f"✅ Installed {record.name} {record.version}", fg="green", bold=True)
    for alias, path in sorted(record.binary_paths.items()):
        click.echo(f"   • {alias}  → {path}")


@extension.command()
@click.argument("name", required=False)
@click.option("--all", "update_all", is_flag=True, help="Update all installed extensions.")
@click.pass_context
def update(ctx: click.Context, name: str | None, update_all: bool) -> None:
    """Update an extension to the latest version."""
    session = _session(ctx)

    if update_all:
        pairs = session.manager.update_all()
        if not pairs:
            click.secho("⚠️  No extensions are currently installed.", fg="yellow")
            click.echo("   Use 'pact extension install <name>' to install one.")
            sys.exit(1)
    elif name:
        before = session.registry.get(session.manager.owner_of(name))
        pairs = [(before, session.manager.update(name))]
    else:
        raise click.UsageError("Please specify an extension name or use --all.")

    for before, after in pairs:
        if before is after:
            click.secho(f"✅ {after.name} is up to date ({after.version})", fg="green")
        else:
            click.secho(f"🔄 Updated {after.name} {before.version} → {after.version}", fg="green")


@extension.command()
@click.argument("name", required=False)
@click.option("--all", "uninstall_all", is_flag=True, help="Uninstall all installed extensions.")
@click.pass_context
def uninstall(ctx: click.Context, name: str | None, uninstall_all: bool) -> None:
    """Uninstall an extension and all of its aliases."""
    session = _session(ctx)

    if uninstall_all:
        records = session.manager.uninstall_all()
        if not records:
            click.secho("⚠️  No extensions are currently installed.", fg="yellow")
    elif name:
        records = [session.manager.uninstall(name)]
    else:
        raise click.UsageError("Please specify an extension name or use --all.")

    for record in records:
        click.secho(f"🗑️  Uninstalled {record.name} {record.version}", fg="green")
