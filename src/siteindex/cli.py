"""Command line interface for siteindex."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from siteindex.config import AppConfig
from siteindex.diagnostics import DropCounter
from siteindex.models import SearchOptions
from siteindex.service import SiteService
from siteindex.web.app import create_app


console = Console()
app = typer.Typer(help="siteindex - route protection and search over synced site content")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_service(content_dir: Path | None, diagnostics: DropCounter | None = None) -> SiteService:
    config = AppConfig(content_dir=content_dir if content_dir is not None else AppConfig().content_dir)
    resolved = config.resolve_content_dir(Path.cwd())
    if not resolved.is_dir():
        raise typer.BadParameter(f"Content directory not found: {resolved}")
    return SiteService.from_config(config, base_dir=Path.cwd(), diagnostics=diagnostics)


def _report_drops(diagnostics: DropCounter) -> None:
    for (source, reason), count in sorted(diagnostics.counts.items()):
        console.print(f"[yellow]Dropped {count} {source} record(s): {reason}[/yellow]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    content_dir: Path = typer.Option(None, "--content-dir", help="Synced content directory"),
    type_: str = typer.Option("all", "--type", help="all, pages, blog or databases"),
    scope: str = typer.Option("", help="Only match routes under this path"),
    offset: int = typer.Option(0, help="Number of results to skip"),
    limit: int = typer.Option(AppConfig().default_limit, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the synced search index."""
    _setup_logging(verbose)
    diagnostics = DropCounter()
    service = _build_service(content_dir, diagnostics)

    response = service.search(query, SearchOptions(type=type_, scope=scope, offset=offset, limit=limit))
    if verbose:
        _report_drops(diagnostics)
    if not response.items:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Route")
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Snippet")

    for hit in response.items:
        table.add_row(f"{hit.score:.2f}", hit.route_path, hit.title, hit.kind, hit.snippet[:120])

    console.print(table)
    meta = response.meta
    console.print(f"Showing {meta.offset + 1}-{meta.offset + len(response.items)} of {meta.total}")


@app.command()
def protect(
    path: str = typer.Argument(..., help="Request path to check"),
    content_dir: Path = typer.Option(None, "--content-dir", help="Synced content directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show which protection rule, if any, applies to a path."""
    _setup_logging(verbose)
    service = _build_service(content_dir)

    decision = service.resolve_protection(path)
    if not decision.protected or decision.rule is None:
        console.print(f"[green]{path} is public.[/green]")
        return

    rule = decision.rule
    console.print(
        f"[red]{path} is protected[/red] by rule [bold]{rule.id}[/bold] "
        f"({type(rule).__name__}, mode={rule.mode}, auth={rule.auth})"
    )


@app.command()
def resolve(
    path: str = typer.Argument(..., help="Request path to resolve"),
    content_dir: Path = typer.Option(None, "--content-dir", help="Synced content directory"),
) -> None:
    """Normalize a path and look up its page id."""
    service = _build_service(content_dir)
    resolution = service.resolve(path)
    console.print(f"Path: [bold]{resolution.path}[/bold]")
    console.print(f"Page id: {resolution.page_id or '-'}")
    if resolution.redirect:
        console.print(f"Redirect: {resolution.redirect}")


@app.command()
def routes(
    content_dir: Path = typer.Option(None, "--content-dir", help="Synced content directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List the routes manifest."""
    _setup_logging(verbose)
    diagnostics = DropCounter()
    service = _build_service(content_dir, diagnostics)

    index = service.store.route_index()
    if not len(index):
        console.print("[yellow]Routes manifest is empty or missing.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Route")
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Page id")
    for entry in sorted(index, key=lambda e: e.route_path):
        table.add_row(entry.route_path, entry.title, entry.kind, entry.id)
    console.print(table)
    _report_drops(diagnostics)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    content_dir: Path = typer.Option(None, "--content-dir", help="Synced content directory"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    config = AppConfig(content_dir=content_dir if content_dir is not None else AppConfig().content_dir)
    resolved = config.resolve_content_dir(Path.cwd())
    if not resolved.is_dir():
        console.print("[yellow]Warning: content directory not found, all routes are public.[/yellow]")

    console.print(f"Starting API on http://{host}:{port} (content: {resolved})")
    uvicorn.run(
        create_app(SiteService.from_config(config, base_dir=Path.cwd())),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
