"""
enginevu — CLI entrypoint.

Usage:
    python -m enginevu.main --help
    python -m enginevu.main install kiesel libjs
    python -m enginevu.main install kiesel@0.1.0
    python -m enginevu.main update
    python -m enginevu.main status
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from enginevu import __version__
from enginevu.core.config.loader import ConfigError, build_context, load_settings
from enginevu.core.models.context import InstallContext
from enginevu.core.models.receipt import Receipt
from enginevu.core.observability.logging_config import resolve_level, setup_logging
from enginevu.core.platform import detect_platform


@click.group()
@click.version_option(version=__version__, prog_name="enginevu")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $ENGINEVU_CONFIG or <root>/config.yml).",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Install root (default: $ENGINEVU_ROOT or ~/.enginevu).",
)
@click.option(
    "--platform",
    "platform_id",
    default=None,
    help="Override the detected platform identifier, e.g. linux-x64.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    root: str | None,
    platform_id: str | None,
) -> None:
    """enginevu — install and smoke-test JavaScript engine binaries."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("ENGINEVU_LOG_LEVEL"),
        ),
        log_file=os.environ.get("ENGINEVU_LOG_FILE"),
        log_file_level=os.environ.get("ENGINEVU_LOG_FILE_LEVEL"),
    )

    try:
        settings = load_settings(
            Path(config_path) if config_path else None,
            env=os.environ,
            root=Path(root) if root else None,
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    ctx.obj["settings"] = settings
    ctx.obj["context"] = build_context(settings, platform_id or detect_platform(), env=os.environ)


def _context(ctx: click.Context) -> InstallContext:
    return ctx.obj["context"]


@cli.command()
@click.argument("engines", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, engines: tuple[str, ...], as_json: bool) -> None:
    """Install engines, e.g. `install kiesel libjs` or `install kiesel@0.1.0`.

    With no arguments, installs the engines listed in config.yml.
    """
    from enginevu.core.services.pipeline import install_engines
    from enginevu.engines import default_registry

    requested = list(engines) or list(ctx.obj["settings"].engines)
    if not requested:
        raise click.UsageError("No engines given and none configured in config.yml.")

    registry = default_registry()
    context = _context(ctx)
    receipts: list[Receipt] = []
    for item in requested:
        engine_id, _, version = item.partition("@")
        receipts.extend(install_engines(registry, [engine_id], context, version=version or "latest"))

    _report(receipts, as_json, quiet=ctx.obj.get("quiet", False))


@cli.command()
@click.argument("engines", nargs=-1)
@click.option("--force", is_flag=True, help="Reinstall even when already up to date.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(ctx: click.Context, engines: tuple[str, ...], force: bool, as_json: bool) -> None:
    """Update installed engines to their latest builds."""
    from enginevu.core.services.pipeline import update_engines
    from enginevu.engines import default_registry

    receipts = update_engines(
        default_registry(),
        _context(ctx),
        engine_ids=list(engines) or None,
        force=force,
    )
    if not receipts and not as_json:
        click.echo("No engines installed.")
        return
    _report(receipts, as_json, quiet=ctx.obj.get("quiet", False))


@cli.command()
@click.argument("engines", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, engines: tuple[str, ...], as_json: bool) -> None:
    """Remove installed engines and their bin entries."""
    from enginevu.core.services.pipeline import uninstall_engine

    receipts = [uninstall_engine(engine_id, _context(ctx)) for engine_id in engines]
    _report(receipts, as_json, quiet=ctx.obj.get("quiet", False))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show installed engines."""
    from enginevu.core.persistence.status_file import load_status

    context = _context(ctx)
    current = load_status(context.status_path)

    if as_json:
        click.echo(json.dumps(current.model_dump(mode="json"), indent=2))
        return

    if not current.engines:
        click.echo("No engines installed.")
        click.echo(f"   Root: {context.root}")
        return

    click.secho(f"\n📦 Installed engines ({context.root})", fg="cyan", bold=True)
    for record in current.engines.values():
        if record.broken:
            click.secho(f"   • {record.id:<10} {record.version} (broken, run `enginevu update`)", fg="red")
        else:
            click.echo(f"   • {record.id:<10} {record.version}")
        for entry in record.bin_entries:
            click.echo(f"       → {entry}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def engines(ctx: click.Context, as_json: bool) -> None:
    """List known engines and whether this platform is supported."""
    from enginevu.engines import default_registry

    platform_id = _context(ctx).platform
    registry = default_registry()
    specs = registry.specs()
    available = {engine.spec.id for engine in registry.supported_on(platform_id)}

    if as_json:
        payload = {
            "platform": platform_id,
            "engines": [
                {**spec.model_dump(mode="json"), "available": spec.id in available}
                for spec in specs
            ],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.secho(f"\n🔧 Engines for {platform_id}", fg="cyan", bold=True)
    for spec in specs:
        if spec.id in available:
            click.echo(f"   ✓ {spec.id:<10} {spec.name}")
        else:
            click.secho(f"   ✗ {spec.id:<10} {spec.name} (unsupported)", fg="bright_black")
    click.echo()


@cli.command("platform")
@click.pass_context
def platform_cmd(ctx: click.Context) -> None:
    """Print the platform identifier used to pick builds."""
    click.echo(_context(ctx).platform)


# ── Output ──────────────────────────────────────────────────────────


def _report(receipts: list[Receipt], as_json: bool, *, quiet: bool = False) -> None:
    """Print receipts and exit 1 if any engine failed."""
    failed = any(r.failed for r in receipts)

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in receipts], indent=2))
        if failed:
            sys.exit(1)
        return

    for r in receipts:
        if r.ok:
            if not quiet:
                detail = f" → {r.bin_path}" if r.bin_path else ""
                click.secho(f"✅ {r.engine} {r.version or ''}{detail}", fg="green")
        elif r.status == "skipped":
            if not quiet:
                click.secho(f"⏭️  {r.output}", fg="yellow")
        else:
            click.secho(f"❌ {r.engine}: {r.error}", fg="red", err=True)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
