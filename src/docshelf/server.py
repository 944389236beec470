"""aiohttp server for docshelf.

Application factory and route registration.
"""

import logging

from aiohttp import web

from docshelf.api.navigation import create_navigation_routes
from docshelf.api.pages import create_pages_routes
from docshelf.api.search import create_search_routes
from docshelf.app_keys import documentation_key, search_key
from docshelf.config import Config, SearchConfig
from docshelf.core.cache import Documentation, MemoryCache
from docshelf.core.search import SearchService
from docshelf.search.client import MeilisearchClient, create_http_client

logger = logging.getLogger(__name__)


def create_documentation(config: Config) -> Documentation:
    """Create the cached documentation service for a config."""
    cache = MemoryCache(ttl=config.docs.cache_ttl)
    return Documentation(config.docs.source_dir, cache)


def create_search_client(search: SearchConfig) -> MeilisearchClient | None:
    """Create a Meilisearch client, or None when no index url is configured.

    The caller owns the underlying httpx client and must close it.
    """
    if not search.url:
        return None
    http_client = create_http_client(search.api_key, search.timeout)
    return MeilisearchClient(http_client, search.url, search.index)


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    app = web.Application()

    documentation = create_documentation(config)
    client = create_search_client(config.search)
    search = SearchService(documentation, client, limit=config.search.limit)

    app[documentation_key] = documentation
    app[search_key] = search

    app.router.add_routes(create_pages_routes())
    app.router.add_routes(create_navigation_routes())
    app.router.add_routes(create_search_routes())

    if client is not None:
        logger.info(f"Search index: {config.search.url} ({config.search.index})")
        app.on_cleanup.append(_close_search_client)
    else:
        logger.info("Search index: disabled, using local search")

    return app


async def _close_search_client(app: web.Application) -> None:
    """Close the Meilisearch HTTP client on application cleanup."""
    client = app[search_key].client
    if client is not None:
        await client.client.aclose()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(app, host=config.server.host, port=config.server.port)
