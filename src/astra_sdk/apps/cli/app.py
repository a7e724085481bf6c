# src/astra_sdk/apps/cli/app.py
from __future__ import annotations

import json
import os
import traceback
from typing import List, Optional

import typer
import yaml
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.table import Table

from astra_sdk.client import AstraClient, is_valid_token
from astra_sdk.config import const
from astra_sdk.domain import CapabilityKind, redact
from astra_sdk.errors import AstraError, ConfigurationError, ConnectionFailure, IllegalArgument
from astra_sdk.services.astrarc import AstraRc
from astra_sdk.services.bundle import BundleResolver
from astra_sdk.services.context import SessionContext
from astra_sdk.services.logging import setup_logging
from astra_sdk.services.settings import Settings

app = typer.Typer(help="CLI for DataStax Astra: capabilities, configuration and secure bundles")
config_app = typer.Typer(help="Inspect the ~/.astrarc configuration file")
app.add_typer(config_app, name="config")

console = Console()

# коды выхода из оригинального shell
EXIT_INVALID_PARAMETER = 2
EXIT_CANNOT_CONNECT = 3


def _parse_properties(items: Optional[List[str]]) -> dict[str, str]:
    props: dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise typer.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="-D")
        k, v = item.split("=", 1)
        props[k.strip()] = v.strip()
    return props


def _fail(message: str, code: int) -> None:
    console.print(f"[red]{message}[/red]")
    if os.getenv("ASTRA_CLI_DEBUG") == "1":
        traceback.print_exc()
    raise typer.Exit(code)


def _session(ctx: typer.Context) -> SessionContext:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", help="Path of the configuration file (default ~/.astrarc)"),
    section: str = typer.Option(const.ASTRARC_DEFAULT_SECTION, "--section", help="Section of the configuration file"),
    prop: Optional[List[str]] = typer.Option(None, "-D", help="Property KEY=VALUE, overrides environment and config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR"),
):
    # .env не перетирает уже заданные переменные окружения
    load_dotenv(find_dotenv(usecwd=True), override=False)
    settings = Settings.from_sources().with_overrides(config_file=config, log_level=log_level)
    setup_logging(settings.log_level if log_level else "WARNING")
    if ctx.obj is None:
        ctx.obj = SessionContext(settings=settings, config_section=section, properties=_parse_properties(prop))
    ctx.call_on_close(ctx.obj.close)


@app.command("capabilities")
def capabilities(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Application token"),
    db_id: Optional[str] = typer.Option(None, "--db-id", help="Database identifier"),
    region: Optional[str] = typer.Option(None, "--region", help="Database region"),
    output: str = typer.Option("table", "--output", "-o", help="table|json|yaml"),
):
    """Show which APIs can be used with the current configuration."""
    session = _session(ctx)
    session.token = token or session.token
    session.database_id = db_id or session.database_id
    session.database_region = region or session.database_region
    try:
        client = session.rebuild()
    except (IllegalArgument, ConfigurationError) as e:
        _fail(str(e), EXIT_INVALID_PARAMETER)

    rows = []
    for kind in CapabilityKind:
        activation = client.capabilities[kind]
        rows.append(
            {
                "capability": kind.value,
                "available": activation.ok,
                "missing": [] if activation.ok else list(activation.missing),
                "error": None if activation.ok or activation.cause is None else str(activation.cause),
            }
        )
    payload = {"bundle": {"source": client.bundle.source.value, "path": str(client.bundle.path) if client.bundle.path else None}, "capabilities": rows}

    if output == "json":
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    if output == "yaml":
        typer.echo(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True))
        return

    table = Table(title="Astra capabilities")
    table.add_column("Capability")
    table.add_column("Status")
    table.add_column("Missing / error")
    for row in rows:
        status = "[green]available[/green]" if row["available"] else "[yellow]unavailable[/yellow]"
        table.add_row(row["capability"], status, row["error"] or ", ".join(row["missing"]))
    console.print(table)
    console.print(f"Secure bundle: {payload['bundle']['source']} {payload['bundle']['path'] or ''}")


@app.command("setup")
def setup(
    ctx: typer.Context,
    token: str = typer.Option(..., "--token", "-t", help="Application token (AstraCS:...)"),
    check: bool = typer.Option(True, "--check/--no-check", help="Validate the token against the DevOps API"),
):
    """Store the token in the configuration file section."""
    session = _session(ctx)
    if not is_valid_token(token):
        _fail(f"Token provided is invalid. It should start with '{const.TOKEN_PREFIX}...'", EXIT_INVALID_PARAMETER)
    if check:
        try:
            session.connect(token)
        except ConnectionFailure as e:
            _fail(f"Token provided is invalid: {e}", EXIT_CANNOT_CONNECT)
        except AstraError as e:
            _fail(str(e), EXIT_CANNOT_CONNECT)
    rc = session.astrarc
    rc.update_section(session.config_section, {const.ASTRA_DB_APPLICATION_TOKEN: token})
    path = rc.save()
    typer.echo(f"Saved: [{session.config_section}] in {path}")


@config_app.command("sections")
def config_sections(ctx: typer.Context):
    """List sections of the configuration file."""
    rc: AstraRc = _session(ctx).astrarc
    if not rc.exists():
        _fail(f"Configuration file '{rc.path}' has not been found. Try [astra setup]", EXIT_INVALID_PARAMETER)
    for name in rc.sections():
        typer.echo(f"- {name}")


@config_app.command("show")
def config_show(ctx: typer.Context, show: bool = typer.Option(False, "--show", help="Show secret values")):
    """Print one section with secrets redacted."""
    session = _session(ctx)
    try:
        values = session.astrarc.require_section(session.config_section)
    except ConfigurationError as e:
        _fail(f"{e}. Try [astra setup]", EXIT_INVALID_PARAMETER)
    typer.echo(f"[{session.config_section}]")
    for k, v in values.items():
        typer.echo(f"{k}={v if show or k not in const.SECRET_FIELDS else redact(v)}")


@app.command("bundle")
def bundle(
    ctx: typer.Context,
    db_id: str = typer.Option(..., "--db-id", help="Database identifier"),
    path: Optional[str] = typer.Option(None, "--path", help="Explicit secure bundle path"),
):
    """Resolve the secure connect bundle of a database (explicit, cached or downloaded)."""
    session = _session(ctx)
    downloader = None
    try:
        client: AstraClient = session.connect()
        downloader = client.devops()
    except AstraError as e:
        console.print(f"[yellow]DevOps API unavailable, download disabled: {e}[/yellow]")
    resolver = BundleResolver(session.settings.cache_dir, downloader, timeout=session.settings.download_timeout)
    try:
        location = resolver.resolve(db_id, path)
    except ConfigurationError as e:
        _fail(str(e), EXIT_INVALID_PARAMETER)
    if not location.resolved:
        _fail(f"Secure bundle for '{db_id}' could not be resolved", EXIT_CANNOT_CONNECT)
    typer.echo(f"{location.source.value}: {location.path}")


if __name__ == "__main__":
    app()
