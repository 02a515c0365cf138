"""CLI entry point for Charon."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from charon import __version__
from charon.config import Settings
from charon.resolver import ResolutionFailure, Resolver
from charon.sources.base import ResourceType
from charon.sources.community import CommunitySource
from charon.sources.errors import BackendUnavailableError, CharonError
from charon.sources.private import GroupScopedSource, PrivateStoreSource
from charon.sources.registry import build_registry
from charon.sources.static import StaticHostSource

console = Console()


def _build_resolver() -> Resolver:
    """Build a resolver from CHARON_* settings, exiting on bad configuration."""
    try:
        return Resolver(build_registry(Settings.from_env()))
    except (CharonError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(1)


def _user_for(groups: tuple[str, ...]) -> dict | None:
    return {"groups": list(groups)} if groups else None


def _split_parts(parts: tuple[str, ...]) -> list[str]:
    """Accept both `zika` `2019` and `zika/2019` forms."""
    return [p for part in parts for p in part.split("/") if p]


def _fail(failure: ResolutionFailure) -> None:
    console.print(f"[red]Error: {escape(failure.message)}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def cli(log_level: str):
    """Charon - resolve Nextstrain dataset requests to locations."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@cli.command()
def sources():
    """List registered sources."""
    resolver = _build_resolver()

    table = Table(title="Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Location", style="green")
    table.add_column("Access")

    for name, source in resolver.registry.items():
        if isinstance(source, StaticHostSource):
            table.add_row(name, "static", source.base_url, "public")
        elif isinstance(source, CommunitySource):
            table.add_row(
                name,
                "community",
                f"{source.raw_content_url}<owner>/<repo>/{source.branch}/auspice/",
                "public",
            )
        elif isinstance(source, GroupScopedSource):
            table.add_row(
                name, "private", f"s3://{source.bucket}", f"group: {source.group}"
            )
        elif isinstance(source, PrivateStoreSource):
            table.add_row(name, "private", f"s3://{source.bucket}", "restricted")
        else:
            table.add_row(name, type(source).__name__, "", "")

    console.print(table)


@cli.command()
@click.argument("source")
@click.argument("parts", nargs=-1, required=True)
@click.option(
    "--type",
    "-t",
    "resource_type",
    default=ResourceType.TREE.value,
    type=click.Choice([t.value for t in ResourceType]),
    help="Resource type",
)
@click.option("--group", "-g", "groups", multiple=True, help="Act as a member of GROUP")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def resolve(
    source: str,
    parts: tuple[str, ...],
    resource_type: str,
    groups: tuple[str, ...],
    as_json: bool,
):
    """Resolve a dataset resource to a URL.

    Example: charon resolve community nextstrain zika-tutorial --type meta
    """
    resolver = _build_resolver()

    try:
        result = asyncio.run(
            resolver.resolve(
                source,
                _split_parts(parts),
                ResourceType(resource_type),
                _user_for(groups),
            )
        )
    except BackendUnavailableError as e:
        console.print(f"[red]Backend unavailable: {escape(str(e))}[/red]")
        sys.exit(2)

    if isinstance(result, ResolutionFailure):
        _fail(result)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    console.print(result.url)
    if result.is_signed:
        console.print(
            f"[dim]Signed URL, expires {result.expires_at.isoformat()} "
            "(do not cache)[/dim]"
        )


def _print_listing(resolver: Resolver, source: str, groups: tuple[str, ...], kind: str):
    outcome = resolver.authorize(source, _user_for(groups))
    if isinstance(outcome, ResolutionFailure):
        _fail(outcome)

    lister = resolver.list_datasets if kind == "datasets" else resolver.list_narratives
    try:
        entries = asyncio.run(lister(source))
    except BackendUnavailableError as e:
        console.print(f"[red]Backend unavailable: {escape(str(e))}[/red]")
        sys.exit(2)

    if not entries:
        console.print(f"[yellow]No {kind} available from {source}[/yellow]")
        return

    for entry in entries:
        console.print(entry["request"])
    console.print(f"[dim]{len(entries)} {kind}[/dim]")


@cli.command()
@click.argument("source")
@click.option("--group", "-g", "groups", multiple=True, help="Act as a member of GROUP")
def datasets(source: str, groups: tuple[str, ...]):
    """List datasets available from SOURCE."""
    _print_listing(_build_resolver(), source, groups, "datasets")


@cli.command()
@click.argument("source")
@click.option("--group", "-g", "groups", multiple=True, help="Act as a member of GROUP")
def narratives(source: str, groups: tuple[str, ...]):
    """List narratives available from SOURCE."""
    _print_listing(_build_resolver(), source, groups, "narratives")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind host")
@click.option("--port", default=5000, help="Bind port")
@click.option("--log-level", "server_log_level", default="info", help="Server log level")
def serve(host: str, port: int, server_log_level: str):
    """Start the HTTP API server."""
    from charon.api.app import run_server

    try:
        settings = Settings.from_env()
    except CharonError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(f"[bold blue]Starting Charon on http://{host}:{port}[/bold blue]")
    try:
        run_server(host=host, port=port, settings=settings, log_level=server_log_level)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")


if __name__ == "__main__":
    cli()
