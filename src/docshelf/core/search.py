"""Documentation search.

Queries the Meilisearch index when one is configured and falls back to a
substring scan over the cached documents when the index is unavailable.
"""

import logging
from dataclasses import dataclass
from typing import TypedDict

import httpx

from docshelf.core.cache import Documentation
from docshelf.core.excerpt import (
    HIGHLIGHT_POST_TAG,
    HIGHLIGHT_PRE_TAG,
    highlighted_excerpt,
    query_excerpt,
)
from docshelf.core.navigation import DEFAULT_CATEGORY
from docshelf.search.client import MeilisearchClient, MeilisearchError, MeilisearchHitDict

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 20
HIGHLIGHT_ATTRIBUTES = ("title", "content")


class SearchResultDict(TypedDict):
    """Dictionary representation of a search result."""

    title: str
    slug: str
    excerpt: str
    category: str


@dataclass(frozen=True)
class SearchResult:
    """Single search result."""

    title: str
    slug: str
    excerpt: str
    category: str

    def to_dict(self) -> SearchResultDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "category": self.category,
        }


def search_documents(documentation: Documentation, query: str) -> list[SearchResult]:
    """Search documents by case-insensitive substring.

    Matches on title or raw source; results keep navigation order.

    Args:
        documentation: Cached documentation
        query: Search query

    Returns:
        Matching documents with excerpts around the first match
    """
    needle = query.lower()
    results: list[SearchResult] = []
    for document, category in documentation.documents():
        if needle in document.title.lower() or needle in document.raw.lower():
            results.append(
                SearchResult(
                    title=document.title,
                    slug=document.slug,
                    excerpt=query_excerpt(document.raw, query),
                    category=category,
                )
            )
    return results


class SearchService:
    """Search with index-first, local-fallback behaviour.

    The index is tried once per query; any transport error, error status or
    malformed payload switches that query to the local scan. No retries.
    """

    def __init__(
        self,
        documentation: Documentation,
        client: MeilisearchClient | None = None,
        *,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        """Initialize search service.

        Args:
            documentation: Cached documentation for the local fallback
            client: Meilisearch client, or None to search locally only
            limit: Maximum number of index hits
        """
        self._documentation = documentation
        self._client = client
        self._limit = limit

    @property
    def client(self) -> MeilisearchClient | None:
        """Meilisearch client, if configured."""
        return self._client

    async def search(self, query: str) -> list[SearchResult]:
        """Search documentation.

        Args:
            query: Search query; shorter than MIN_QUERY_LENGTH yields no results

        Returns:
            Search results, in index ranking order or navigation order
        """
        if len(query) < MIN_QUERY_LENGTH:
            return []

        if self._client is not None:
            try:
                return await self._search_index(self._client, query)
            except (httpx.HTTPError, MeilisearchError) as e:
                logger.warning(f"Search index unavailable, using local search: {e!r}")

        return search_documents(self._documentation, query)

    async def _search_index(self, client: MeilisearchClient, query: str) -> list[SearchResult]:
        response = await client.search(
            query,
            attributes_to_highlight=HIGHLIGHT_ATTRIBUTES,
            highlight_pre_tag=HIGHLIGHT_PRE_TAG,
            highlight_post_tag=HIGHLIGHT_POST_TAG,
            limit=self._limit,
        )
        return [_result_from_hit(hit) for hit in response["hits"]]


def _result_from_hit(hit: MeilisearchHitDict) -> SearchResult:
    """Build a result from a hit, preferring highlighted fields."""
    formatted = hit.get("_formatted") or {}
    content = formatted.get("content") or hit.get("content") or ""
    return SearchResult(
        title=str(formatted.get("title") or hit["title"]),
        slug=str(hit["slug"]),
        excerpt=highlighted_excerpt(str(content)),
        category=str(hit.get("category") or DEFAULT_CATEGORY),
    )
