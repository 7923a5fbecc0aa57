#!/usr/bin/env python3
"""
PSC CLI

Typer/Rich-powered command-line interface for paced Brave searches across
the web, news, image and video endpoints.
"""

from typing import Dict, List, Optional

import requests
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from PSC.services.shared.errors import (
    EXIT_CONFIGURATION,
    PSCError,
    format_user_error,
    log_error,
    map_to_exit_code,
)
from PSC.services.shared.settings import get_settings
from PSC.tools.search.brave import ENDPOINTS, BraveSearchClient, get_endpoint
from PSC.tools.search.factory import SearchFactory, resolve_api_key
from PSC.tools.search.api_key_validator import validate_brave_api_key
from PSC.tools.search.multi import MultiEndpointSearch
from PSC.tools.search.schema import SearchRequest, SearchResults


console = Console()

app = typer.Typer(help="Paced Brave search CLI")


def _build_clients(
    endpoints: List[str],
    api_key: Optional[str],
    simulated: bool,
) -> Dict[str, BraveSearchClient]:
    """Build clients for the requested endpoints, all sharing the default pacer."""
    if simulated:
        return SearchFactory.simulated(endpoints)

    clients: Dict[str, BraveSearchClient] = {}
    for key in endpoints:
        client = SearchFactory.get_client(key, api_key=api_key)
        clients[client.endpoint.key] = client
    return clients


def _render_results(results: SearchResults, as_json: bool) -> None:
    if as_json:
        console.print_json(results.model_dump_json())
        return

    if not results.results:
        console.print(f"[yellow]No results for: {results.original_query}[/yellow]")
        return

    table = Table(title=results.name, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Description")

    for idx, hit in enumerate(results.results, 1):
        table.add_row(str(idx), hit.title, hit.url, hit.description or "")

    console.print(table)


def _fail(exc: Exception, verbose: bool) -> None:
    log_error(exc, service="cli")
    title = "Configuration Error" if map_to_exit_code(exc) == EXIT_CONFIGURATION else "Search Failed"
    console.print(Panel.fit(
        f"[bold red]{title}[/bold red]\n\n{format_user_error(exc, include_details=verbose)}",
        border_style="red",
    ))
    if verbose and isinstance(exc, PSCError):
        console.print(exc.to_dict())
    raise typer.Exit(code=map_to_exit_code(exc))


@app.command("search")
def search_command(
    query: str = typer.Argument(..., help="Search query."),
    endpoint: str = typer.Option(
        "web",
        "--endpoint",
        "-e",
        help=f"Endpoint variant: {', '.join(ENDPOINTS)}.",
    ),
    count: int = typer.Option(10, "--count", "-n", help="Results per page."),
    offset: int = typer.Option(0, "--offset", help="Page offset (0 = first page)."),
    raw: bool = typer.Option(False, "--raw", help="Print the provider's response body verbatim."),
    as_json: bool = typer.Option(False, "--json", help="Print normalized results as JSON."),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        help="Explicit Brave API key; overrides BRAVE_API_KEY when set.",
    ),
    simulated: bool = typer.Option(
        False,
        "--simulated",
        help="Use the offline simulated transport instead of the live API.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show error details."),
) -> None:
    """Run one paced search against a single endpoint."""
    try:
        request = SearchRequest(query=query, count=count, offset=offset)
        clients = _build_clients([endpoint], api_key, simulated)
        client = next(iter(clients.values()))

        if raw:
            body = client.search_raw(request)
            console.print(body, markup=False, highlight=False, soft_wrap=True)
            return

        results = client.search(request)
    except (PSCError, ValidationError, requests.RequestException) as exc:
        _fail(exc, verbose)

    _render_results(results, as_json)


@app.command("fanout")
def fanout_command(
    query: str = typer.Argument(..., help="Search query."),
    endpoint: Optional[List[str]] = typer.Option(
        None,
        "--endpoint",
        "-e",
        help="Endpoint to include; repeat for several. Defaults to all enabled endpoints.",
    ),
    count: int = typer.Option(10, "--count", "-n", help="Results per endpoint."),
    as_json: bool = typer.Option(False, "--json", help="Print merged results as JSON."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Explicit Brave API key."),
    simulated: bool = typer.Option(False, "--simulated", help="Use the offline simulated transport."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show error details."),
) -> None:
    """Search several endpoints at once; requests still share one pacing budget."""
    endpoints = endpoint or get_settings().brave.enabled_endpoints

    try:
        request = SearchRequest(query=query, count=count)
        clients = _build_clients(endpoints, api_key, simulated)
        results = MultiEndpointSearch(clients).search(request)
    except (PSCError, ValidationError, requests.RequestException) as exc:
        _fail(exc, verbose)

    _render_results(results, as_json)


@app.command("endpoints")
def endpoints_command() -> None:
    """List endpoint variants and whether each is enabled."""
    settings = get_settings()
    key_ok, _ = validate_brave_api_key(resolve_api_key(settings=settings) or "", raise_on_invalid=False)
    enabled = set(settings.brave.enabled_endpoints)

    table = Table(title="Brave search endpoints")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Base URL", style="cyan")
    table.add_column("Enabled")

    for key in ENDPOINTS:
        descriptor = get_endpoint(key, api_root=settings.brave.base_url)
        is_enabled = key_ok and key in enabled
        table.add_row(
            descriptor.key,
            descriptor.display_name,
            descriptor.base_url,
            "[green]yes[/green]" if is_enabled else "[red]no[/red]",
        )

    console.print(table)
    if not key_ok:
        console.print("[yellow]BRAVE_API_KEY is not configured; all endpoints are disabled.[/yellow]")


if __name__ == "__main__":
    app()
