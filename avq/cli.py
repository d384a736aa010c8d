from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .base import AVQError, BuildError, ParseError
from .diagnostics import Diagnostics
from .parser import COLUMNS, parse_time_series
from .request import TimeSeriesRequest, build_url, mask_api_key
from .settings import settings
from .watchlist import load_watchlist

app = typer.Typer(add_completion=False)

@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Defaults to AV_LOG_LEVEL")):
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

def resolve_key(api_key: Optional[str]) -> str:
    key = api_key or settings.api_key
    if not key:
        raise typer.BadParameter("Missing API key. Pass --api-key or set AV_API_KEY.")
    return key

def print_diagnostics(diagnostics: Diagnostics):
    for d in diagnostics:
        rprint(f"[yellow]{d.kind}[/yellow] {escape(d.message)}")

@app.command()
def url(
    symbol: str = typer.Argument(..., help="Ticker, e.g. IBM"),
    variant: str = typer.Option("daily", help="daily|weekly|monthly"),
    output_size: Optional[str] = typer.Option(None, "--output-size", help="compact|full (daily only)"),
    datatype: Optional[str] = typer.Option(None, "--datatype", help="json|csv"),
    api_key: Optional[str] = typer.Option(None, "--api-key"),
    show_key: bool = typer.Option(False, "--show-key"),
):
    diagnostics = Diagnostics()
    try:
        req = TimeSeriesRequest(variant, symbol, resolve_key(api_key), output_size, datatype)
        out = build_url(req, diagnostics, base_url=settings.base_url)
    except BuildError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(out if show_key else mask_api_key(out))
    print_diagnostics(diagnostics)

@app.command()
def urls(
    watchlist: Path = typer.Argument(..., help="YAML file with a 'requests' list"),
    api_key: Optional[str] = typer.Option(None, "--api-key"),
):
    try:
        reqs = load_watchlist(watchlist, resolve_key(api_key))
    except AVQError as e:
        rprint(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    diagnostics = Diagnostics()
    t = Table(title="Query URLs")
    t.add_column("Symbol")
    t.add_column("Variant")
    t.add_column("URL")
    for req in reqs:
        try:
            out = mask_api_key(build_url(req, diagnostics, base_url=settings.base_url))
        except BuildError as e:
            out = f"[red]{escape(str(e))}[/red]"
        t.add_row(escape(req.symbol), req.variant.value, out)
    rprint(t)
    print_diagnostics(diagnostics)

@app.command()
def parse(
    path: Path = typer.Argument(..., help="Saved CSV response body"),
    limit: int = typer.Option(10, "--limit", help="Rows to show"),
):
    diagnostics = Diagnostics()
    try:
        table = parse_time_series(path.read_text(encoding="utf-8"), diagnostics)
    except OSError as e:
        raise typer.BadParameter(f"Cannot read {path}: {e}") from e
    except ParseError as e:
        rprint(f"[red]Parse failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    t = Table(title=f"{escape(path.name)}: {len(table)} rows")
    for c in COLUMNS:
        t.add_column(c, justify="left" if c == "timestamp" else "right")
    for rec in table.df.head(limit).itertuples(index=False):
        t.add_row(*["" if v is None else escape(str(v)) for v in rec])
    rprint(t)
    print_diagnostics(diagnostics)
    rprint(f"[green]Parsed {len(table)} rows[/green], {len(diagnostics)} diagnostics")
