"""CLI interface for docshelf.

Command-line tool for serving documentation and maintaining its search index.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import cast

import click

from docshelf.config import Config
from docshelf.core.indexing import INDEX_SETTINGS, SearchRecord, build_records
from docshelf.core.search import SearchResult, SearchService
from docshelf.search.client import MeilisearchClient
from docshelf.server import create_documentation, create_search_client

INDEX_BATCH_SIZE = 100

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover docshelf.toml)",
)


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
def cli(verbose: bool) -> None:
    """Docshelf - markdown documentation with navigation and search."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@config_option
@click.option(
    "--source-dir",
    "-s",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Documentation source directory (overrides config)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--search-url",
    default=None,
    help="Meilisearch URL (overrides config)",
)
def serve(
    config_path: Path | None,
    source_dir: Path | None,
    host: str | None,
    port: int | None,
    search_url: str | None,
) -> None:
    """Start the documentation server."""
    from docshelf.server import run_server

    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        source_dir=source_dir,
        search_url=search_url,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Source directory: {config.docs.source_dir}")
    click.echo(f"Cache TTL: {config.docs.cache_ttl}s")
    if config.search.url:
        click.echo(f"Search index: {config.search.url} ({config.search.index})")
    else:
        click.echo("Search index: disabled (no [search] url in config), using local search")

    run_server(config)


@cli.command()
@config_option
@click.option(
    "--fresh",
    is_flag=True,
    help="Clear existing index before importing",
)
def index(config_path: Path | None, fresh: bool) -> None:
    """Index documentation into Meilisearch."""
    config = _load_config(config_path)

    click.echo("Loading documentation files...")
    documentation = create_documentation(config)
    records = build_records(documentation)

    if not records:
        click.echo(click.style("Error: No documentation files found!", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Found {len(records)} documentation files.")
    client = _require_search_client(config)

    try:
        asyncio.run(_index(client, records, fresh=fresh))
    except Exception as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("\nDocumentation indexed successfully!", fg="green", bold=True))


async def _index(client: MeilisearchClient, records: list[SearchRecord], *, fresh: bool) -> None:
    try:
        if fresh:
            click.echo("Clearing existing documentation from search index...")
            await client.wait_for_task(await client.delete_all_documents())

        batches = [
            records[i : i + INDEX_BATCH_SIZE] for i in range(0, len(records), INDEX_BATCH_SIZE)
        ]
        with click.progressbar(batches, label="Indexing") as bar:
            for batch in bar:
                await client.wait_for_task(await client.add_documents(batch))

        click.echo("Syncing index settings...")
        await client.wait_for_task(await client.update_settings(INDEX_SETTINGS))
    finally:
        await client.client.aclose()


@cli.command()
@config_option
def flush(config_path: Path | None) -> None:
    """Clear documentation from the Meilisearch index."""
    config = _load_config(config_path)
    client = _require_search_client(config)

    click.echo("Flushing documentation from search index...")
    try:
        asyncio.run(_flush(client))
    except Exception as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Documentation search index cleared successfully!", fg="green"))


async def _flush(client: MeilisearchClient) -> None:
    try:
        await client.wait_for_task(await client.delete_all_documents())
    finally:
        await client.client.aclose()


@cli.command()
@config_option
@click.argument("query")
def search(config_path: Path | None, query: str) -> None:
    """Search documentation the same way the search endpoint does."""
    config = _load_config(config_path)
    documentation = create_documentation(config)
    service = SearchService(
        documentation,
        create_search_client(config.search),
        limit=config.search.limit,
    )

    results = asyncio.run(_search(service, query))
    if not results:
        click.echo("No results found")
        return

    for result in results:
        click.echo(click.style(result.title, bold=True) + f"  [{result.category}] /{result.slug}")
        click.echo(f"  {result.excerpt}")


async def _search(service: SearchService, query: str) -> list[SearchResult]:
    try:
        return await service.search(query)
    finally:
        if service.client is not None:
            await service.client.client.aclose()


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with error."""
    try:
        return Config.load(config_path)
    except (OSError, ValueError) as e:
        click.echo(click.style(f"Error: invalid configuration: {e}", fg="red"), err=True)
        sys.exit(1)


def _require_search_client(config: Config) -> MeilisearchClient:
    """Create the Meilisearch client or exit with error.

    Raises:
        SystemExit: If search url is not configured
    """
    client = create_search_client(config.search)
    if client is None:
        click.echo(
            click.style(
                "Error: search url required in docshelf.toml",
                fg="red",
            ),
            err=True,
        )
        click.echo("\nAdd the following to your docshelf.toml:")
        click.echo("\n[search]")
        click.echo('url = "http://127.0.0.1:7700"')
        sys.exit(1)
    return cast(MeilisearchClient, client)  # narrowing after sys.exit
