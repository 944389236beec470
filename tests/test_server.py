"""Tests for server module."""

from dataclasses import replace
from typing import Any

import pytest

from docshelf.app_keys import documentation_key, search_key
from docshelf.config import Config, SearchConfig
from docshelf.search.client import MeilisearchClient
from docshelf.server import create_app, create_search_client


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        """Create app with valid configuration."""
        app = create_app(test_config)

        assert documentation_key in app
        assert search_key in app
        assert app[documentation_key].source_dir == test_config.docs.source_dir
        assert app[documentation_key].cache.ttl == test_config.docs.cache_ttl

    def test__no_search_url__local_search_only(self, test_config: Config) -> None:
        """Create app without an index client when no url is configured."""
        app = create_app(test_config)

        assert app[search_key].client is None

    @pytest.mark.asyncio
    async def test__search_url__client_closed_on_cleanup(
        self, test_config: Config, aiohttp_client: Any
    ) -> None:
        """Close the index HTTP client when the app shuts down."""
        config = replace(test_config, search=SearchConfig(url="http://127.0.0.1:7700"))
        app = create_app(config)
        index_client = app[search_key].client
        assert index_client is not None

        client = await aiohttp_client(app)
        await client.close()

        assert index_client.client.is_closed


class TestCreateSearchClient:
    """Tests for create_search_client()."""

    def test__no_url__returns_none(self) -> None:
        """Return None when the index is disabled."""
        assert create_search_client(SearchConfig()) is None

    @pytest.mark.asyncio
    async def test__url__returns_configured_client(self) -> None:
        """Create a client for the configured index."""
        client = create_search_client(
            SearchConfig(url="http://search:7700/", api_key="key", index="docs", timeout=3.0)
        )

        assert isinstance(client, MeilisearchClient)
        assert client.base_url == "http://search:7700"
        assert client.index_url == "http://search:7700/indexes/docs"
        assert client.client.headers["Authorization"] == "Bearer key"
        assert client.client.timeout.connect == 3.0
        await client.client.aclose()
