"""Configuration management for docshelf.

Supports TOML configuration format with auto-discovery.
"""

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Self

CONFIG_FILENAME = "docshelf.toml"
API_KEY_ENV = "MEILISEARCH_KEY"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class DocsConfig:
    """Documentation configuration."""

    source_dir: Path = field(default_factory=lambda: Path("docs"))
    cache_ttl: int = 3600


@dataclass
class SearchConfig:
    """Search index configuration.

    Without a url the external index is disabled and search is local only.
    """

    url: str | None = None
    api_key: str | None = None
    index: str = "documentation"
    timeout: float = 5.0
    limit: int = 20


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    docs: DocsConfig
    search: SearchConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for docshelf.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Self:
        """Create config with all defaults."""
        return cls(
            server=ServerConfig(),
            docs=DocsConfig(),
            search=SearchConfig(api_key=os.environ.get(API_KEY_ENV) or None),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            docs=cls._parse_docs(data.get("docs"), config_dir),
            search=cls._parse_search(data.get("search")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_docs(cls, data: object, config_dir: Path) -> DocsConfig:
        """Parse docs configuration section.

        Args:
            data: Raw docs section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            DocsConfig instance
        """
        if data is None:
            return DocsConfig(source_dir=config_dir / "docs")

        if not isinstance(data, dict):
            raise ValueError("docs section must be a dictionary")

        source_dir = data.get("source_dir", "docs")
        if not isinstance(source_dir, str):
            raise ValueError("docs.source_dir must be a string")

        cache_ttl = data.get("cache_ttl", 3600)
        if not isinstance(cache_ttl, int) or isinstance(cache_ttl, bool) or cache_ttl <= 0:
            raise ValueError("docs.cache_ttl must be a positive integer")

        return DocsConfig(source_dir=config_dir / source_dir, cache_ttl=cache_ttl)

    @classmethod
    def _parse_search(cls, data: object) -> SearchConfig:
        """Parse search configuration section.

        The api key falls back to the MEILISEARCH_KEY environment variable.

        Args:
            data: Raw search section data

        Returns:
            SearchConfig instance
        """
        env_key = os.environ.get(API_KEY_ENV) or None
        if data is None:
            return SearchConfig(api_key=env_key)

        if not isinstance(data, dict):
            raise ValueError("search section must be a dictionary")

        url = data.get("url")
        if url is not None and not isinstance(url, str):
            raise ValueError("search.url must be a string")

        api_key = data.get("api_key", env_key)
        if api_key is not None and not isinstance(api_key, str):
            raise ValueError("search.api_key must be a string")

        index = data.get("index", "documentation")
        if not isinstance(index, str) or not index:
            raise ValueError("search.index must be a non-empty string")

        timeout = data.get("timeout", 5.0)
        if not isinstance(timeout, int | float) or isinstance(timeout, bool) or timeout <= 0:
            raise ValueError("search.timeout must be a positive number")

        limit = data.get("limit", 20)
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise ValueError("search.limit must be a positive integer")

        return SearchConfig(
            url=url or None,
            api_key=api_key or None,
            index=index,
            timeout=float(timeout),
            limit=limit,
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        source_dir: Path | None = None,
        search_url: str | None = None,
    ) -> Self:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            source_dir: Override docs.source_dir
            search_url: Override search.url

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        docs = self.docs
        if source_dir is not None:
            docs = replace(self.docs, source_dir=source_dir)

        search = self.search
        if search_url is not None:
            search = replace(self.search, url=search_url)

        return replace(self, server=server, docs=docs, search=search)
