"""Meilisearch API client for docshelf.

This module provides async HTTP client for the Meilisearch REST API.
Supports searching the documentation index and managing its documents
and settings.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Any, NotRequired, TypedDict

import httpx

logger = logging.getLogger(__name__)

DEFAULT_INDEX = "documentation"
DEFAULT_TIMEOUT = 5.0


class MeilisearchError(Exception):
    """Raised when Meilisearch returns an unusable response or a task fails."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


# Meilisearch API Response TypedDicts


class MeilisearchHitDict(TypedDict):
    """Single search hit."""

    slug: str
    title: str
    content: NotRequired[str]
    category: NotRequired[str]
    _formatted: NotRequired[dict[str, Any]]


class MeilisearchSearchResponseDict(TypedDict):
    """Search response."""

    hits: list[MeilisearchHitDict]
    query: str
    processingTimeMs: NotRequired[int]
    estimatedTotalHits: NotRequired[int]


class MeilisearchTaskDict(TypedDict):
    """Summarized or detailed asynchronous task."""

    taskUid: NotRequired[int]
    uid: NotRequired[int]
    indexUid: NotRequired[str]
    status: str
    type: str
    error: NotRequired[dict[str, Any] | None]


def create_http_client(
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.AsyncClient:
    """Create an httpx client configured for Meilisearch.

    Args:
        api_key: Meilisearch API key, sent as a bearer token when set
        timeout: Request timeout in seconds

    Returns:
        AsyncClient; the caller owns it and must close it
    """
    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return httpx.AsyncClient(headers=headers, timeout=timeout)


class MeilisearchClient:
    """Async HTTP client for a single Meilisearch index."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        index: str = DEFAULT_INDEX,
    ):
        """Initialize Meilisearch client.

        Args:
            client: httpx AsyncClient (see create_http_client)
            base_url: Meilisearch base URL (e.g., http://127.0.0.1:7700)
            index: Index uid holding the documentation
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.index = index
        self.index_url = f"{self.base_url}/indexes/{index}"

    async def search(
        self,
        query: str,
        *,
        attributes_to_highlight: Sequence[str] = (),
        highlight_pre_tag: str = "<em>",
        highlight_post_tag: str = "</em>",
        limit: int = 20,
    ) -> MeilisearchSearchResponseDict:
        """Search the index.

        Args:
            query: Search query
            attributes_to_highlight: Fields returned highlighted in _formatted
            highlight_pre_tag: Marker inserted before each match
            highlight_post_tag: Marker inserted after each match
            limit: Maximum number of hits

        Returns:
            Search response with hits in ranking order

        Raises:
            httpx.HTTPError: If request fails
            MeilisearchError: If the response is not JSON or its hits are malformed
        """
        payload: dict[str, Any] = {"q": query, "limit": limit}
        if attributes_to_highlight:
            payload["attributesToHighlight"] = list(attributes_to_highlight)
            payload["highlightPreTag"] = highlight_pre_tag
            payload["highlightPostTag"] = highlight_post_tag

        logger.debug(f"Searching {self.index} for {query!r}")
        response = await self.client.post(f"{self.index_url}/search", json=payload)
        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MeilisearchError(f"Malformed search response: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("hits"), list):
            raise MeilisearchError("Malformed search response: missing hits")
        for hit in data["hits"]:
            _check_hit(hit)
        result: MeilisearchSearchResponseDict = data  # type: ignore[assignment]
        return result

    async def add_documents(
        self,
        documents: Sequence[Any],
        primary_key: str = "id",
    ) -> MeilisearchTaskDict:
        """Add or replace documents in the index.

        Args:
            documents: JSON-serializable documents
            primary_key: Field holding the document id

        Returns:
            Enqueued task

        Raises:
            httpx.HTTPError: If request fails
        """
        logger.info(f"Adding {len(documents)} documents to index {self.index}")
        response = await self.client.post(
            f"{self.index_url}/documents",
            params={"primaryKey": primary_key},
            json=list(documents),
        )
        self._raise_for_status(response)

        data: MeilisearchTaskDict = response.json()
        return data

    async def delete_all_documents(self) -> MeilisearchTaskDict:
        """Delete every document in the index.

        Returns:
            Enqueued task

        Raises:
            httpx.HTTPError: If request fails
        """
        logger.info(f"Deleting all documents from index {self.index}")
        response = await self.client.delete(f"{self.index_url}/documents")
        self._raise_for_status(response)

        data: MeilisearchTaskDict = response.json()
        return data

    async def update_settings(self, settings: dict[str, Any]) -> MeilisearchTaskDict:
        """Update index settings.

        Args:
            settings: Settings object (searchableAttributes, filterableAttributes, ...)

        Returns:
            Enqueued task

        Raises:
            httpx.HTTPError: If request fails
        """
        logger.info(f"Updating settings for index {self.index}")
        logger.debug(f"Settings payload: {settings}")
        response = await self.client.patch(f"{self.index_url}/settings", json=settings)
        self._raise_for_status(response)

        data: MeilisearchTaskDict = response.json()
        return data

    async def wait_for_task(
        self,
        task: MeilisearchTaskDict,
        *,
        timeout: float = 30.0,
        interval: float = 0.5,
    ) -> MeilisearchTaskDict:
        """Poll a task until it finishes.

        Args:
            task: Task returned by an enqueueing call
            timeout: Seconds to wait before giving up
            interval: Seconds between polls

        Returns:
            Finished task

        Raises:
            httpx.HTTPError: If request fails
            MeilisearchError: If the task fails or does not finish in time
        """
        task_uid = task.get("taskUid", task.get("uid"))
        if task_uid is None:
            raise MeilisearchError("Task has no uid")

        deadline = time.monotonic() + timeout
        while True:
            response = await self.client.get(f"{self.base_url}/tasks/{task_uid}")
            self._raise_for_status(response)
            data: MeilisearchTaskDict = response.json()

            status = data.get("status")
            if status == "succeeded":
                return data
            if status in ("failed", "canceled"):
                error = data.get("error") or {}
                raise MeilisearchError(
                    f"Task {task_uid} {status}: {error.get('message', 'unknown error')}",
                    code=error.get("code"),
                )
            if time.monotonic() >= deadline:
                raise MeilisearchError(f"Task {task_uid} did not finish within {timeout}s")
            await asyncio.sleep(interval)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            logger.error(f"Meilisearch error response: {response.text}")
        response.raise_for_status()


def _check_hit(hit: object) -> None:
    """Raise MeilisearchError unless hit has the fields search results need."""
    if not isinstance(hit, dict):
        raise MeilisearchError(f"Malformed search hit: {hit!r}")
    if not isinstance(hit.get("slug"), str) or "title" not in hit:
        raise MeilisearchError(f"Malformed search hit: missing slug or title in {hit!r}")
    formatted = hit.get("_formatted")
    if formatted is not None and not isinstance(formatted, dict):
        raise MeilisearchError("Malformed search hit: _formatted is not an object")
