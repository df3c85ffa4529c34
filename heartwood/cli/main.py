"""Heartwood CLI: serve the API, watch a directory, convert and run scripts."""

import asyncio
import json
import socket
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from heartwood.lib.config_manager import config
from heartwood.lib.defaults import CONFIG_CATEGORIES
from heartwood.lib.logging_config import setup_logging
from heartwood.lib.settings import load_settings
from heartwood.services.errors import HeartwoodError
from heartwood.services.scripts import create_registry, write_docs
from heartwood.services.tgdf import (
    TgdfOptions,
    ensure_tagged,
    from_tagged,
    is_tagged,
    json_default,
    unwrap_response,
    wrap_response,
)

app = typer.Typer(help="Heartwood script runner with Tagged Data Format (TGDF) envelopes")
console = Console()
err_console = Console(stderr=True)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=json_default)


def _read_json(path: Optional[Path]) -> Any:
    try:
        if path is None:
            return json.load(sys.stdin)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        err_console.print(f"[bold red]Cannot read JSON:[/bold red] {e}")
        raise typer.Exit(1)


def find_available_port(host: str, start_port: int, attempts: int) -> int:
    """First port in ``start_port .. start_port + attempts - 1`` that can be bound.

    Raises:
        RuntimeError: If every port in the range is in use
    """
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                err_console.print(f"[yellow]Port {port} is in use, trying next port...[/yellow]")
                continue
        return port
    raise RuntimeError(f"Could not find an available port after {attempts} attempts")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: HOST)"),
    port: Optional[int] = typer.Option(None, help="First port to try (default: START_PORT)"),
    watch: Optional[bool] = typer.Option(None, "--watch/--no-watch", help="Run the file watcher"),
):
    """Start the API server on the first free port."""
    import uvicorn

    from heartwood.api.main import create_app

    settings = load_settings()
    overrides = {"watch_enabled": watch} if watch is not None else {}
    settings = settings.model_copy(update=overrides)
    setup_logging(settings.service_name, settings.log_level)

    bind_host = host or settings.host
    try:
        chosen = find_available_port(bind_host, port or settings.start_port, settings.max_port_attempts)
    except RuntimeError as e:
        err_console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"[bold green]Heartwood listening on http://{bind_host}:{chosen}[/bold green]")
    uvicorn.run(create_app(settings), host=bind_host, port=chosen, log_config=None)


@app.command()
def watch():
    """Watch INPUT_DIR and process JSON files with DEFAULT_SCRIPT."""
    from heartwood.worker.watch import main as watch_main

    watch_main()


@app.command()
def convert(
    path: Optional[Path] = typer.Argument(None, help="JSON file (stdin if omitted)"),
    extract: bool = typer.Option(False, "--extract", help="Convert from TGDF instead of to TGDF"),
    preserve_arrays: bool = typer.Option(False, "--preserve-arrays", help="Encode arrays as list"),
    deep: bool = typer.Option(True, "--deep/--shallow", help="Convert nested values"),
    strict: bool = typer.Option(False, "--strict", help="Only treat known tags as tagged"),
):
    """Convert JSON to TGDF (or back with --extract)."""
    data = _read_json(path)
    options = TgdfOptions(deep=deep, preserve_arrays=preserve_arrays, strict=strict)

    if extract:
        envelope_type, payload = unwrap_response(data, options=options)
        result = payload if envelope_type else from_tagged(data, options)
    else:
        result = ensure_tagged(data, options)

    typer.echo(_dump(result))


@app.command()
def scripts():
    """List available scripts per tier."""
    settings = load_settings()
    listing = create_registry(settings).list()

    table = Table(title="Scripts")
    table.add_column("Name", style="cyan")
    table.add_column("Tier")
    table.add_column("Endpoint", style="dim")
    for tier in ("builtin", "custom"):
        for name in listing[tier]:
            table.add_row(name, tier, f"/api/{name}")

    console.print(table)
    if not listing["builtin"] and not listing["custom"]:
        console.print("[yellow]No scripts found[/yellow]")


@app.command()
def run(
    name: str = typer.Argument(..., help="Script name"),
    input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="Input JSON file (stdin if omitted)"),
    options_json: str = typer.Option("{}", "--options", "-o", help="Options as a JSON object"),
    raw: bool = typer.Option(False, "--raw", help="Print the plain result instead of an envelope"),
):
    """Run a script once and print its result."""
    try:
        options = json.loads(options_json)
    except ValueError as e:
        err_console.print(f"[bold red]Invalid --options:[/bold red] {e}")
        raise typer.Exit(1)
    if not isinstance(options, dict):
        err_console.print("[bold red]--options must be a JSON object[/bold red]")
        raise typer.Exit(1)

    data = _read_json(input_path)
    envelope_type, payload = unwrap_response(data)
    if envelope_type is None and is_tagged(data, strict=True):
        payload = from_tagged(data, strict=True)

    settings = load_settings()
    registry = create_registry(settings)
    try:
        result = asyncio.run(registry.execute(name, payload, options))
    except HeartwoodError as e:
        err_console.print(f"[bold red]{e.message}[/bold red]")
        if e.details:
            err_console.print(e.details)
        for message in e.validation or []:
            err_console.print(f"  - {message}")
        raise typer.Exit(1)

    output = result if raw else wrap_response(result, version=settings.tgdf_version)
    typer.echo(_dump(output))


@app.command()
def docs(
    output_dir: Path = typer.Option(Path("docs/scripts"), "--output", "-o", help="Directory for Markdown files"),
):
    """Generate Markdown documentation for every script."""
    settings = load_settings()
    written = write_docs(create_registry(settings), output_dir)
    for path in written:
        console.print(f"[green]OK[/green] {path}")
    console.print(f"\n[bold green]Wrote {len(written)} file(s) to {output_dir}[/bold green]")


@app.command("config")
def show_config(
    env: bool = typer.Option(False, "--env", help="Print as .env lines"),
):
    """Show the resolved configuration."""
    if env:
        typer.echo(config.export_to_env())
        return

    rows = {key: (value, source) for key, value, source in config.describe()}
    table = Table(title="Configuration")
    table.add_column("Category", style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")
    for category, keys in CONFIG_CATEGORIES.items():
        for key in keys:
            value, source = rows[key]
            table.add_row(category, key, str(value), source)
    console.print(table)


if __name__ == "__main__":
    app()
