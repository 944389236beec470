"""Meilisearch integration for docshelf.

This package provides the Meilisearch REST API client.
"""

from .client import MeilisearchClient, MeilisearchError, create_http_client

__all__ = ["MeilisearchClient", "MeilisearchError", "create_http_client"]
