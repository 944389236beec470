"""Tests for the Meilisearch API client."""

import json
from collections.abc import Callable

import httpx
import pytest

from docshelf.search.client import MeilisearchClient, MeilisearchError, create_http_client

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler) -> MeilisearchClient:
    """Create a client whose requests are answered by handler."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MeilisearchClient(http_client, "http://search.test/", "docs")


class TestCreateHttpClient:
    """Tests for create_http_client()."""

    @pytest.mark.asyncio
    async def test__api_key__sent_as_bearer_token(self) -> None:
        """Send the api key in the Authorization header."""
        client = create_http_client("secret", timeout=2.0)

        assert client.headers["Authorization"] == "Bearer secret"
        assert client.timeout.read == 2.0
        await client.aclose()

    @pytest.mark.asyncio
    async def test__no_api_key__no_authorization_header(self) -> None:
        """Omit the Authorization header without a key."""
        client = create_http_client(None)

        assert "Authorization" not in client.headers
        await client.aclose()


class TestSearch:
    """Tests for MeilisearchClient.search()."""

    @pytest.mark.asyncio
    async def test__highlighting__sent_in_payload(self) -> None:
        """Post query, limit and highlight options to the index search endpoint."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"hits": [], "query": "grid"})

        client = make_client(handler)
        await client.search(
            "grid",
            attributes_to_highlight=("title", "content"),
            highlight_pre_tag="<mark>",
            highlight_post_tag="</mark>",
            limit=5,
        )

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == "http://search.test/indexes/docs/search"
        assert json.loads(requests[0].content) == {
            "q": "grid",
            "limit": 5,
            "attributesToHighlight": ["title", "content"],
            "highlightPreTag": "<mark>",
            "highlightPostTag": "</mark>",
        }

    @pytest.mark.asyncio
    async def test__hits__returned_in_order(self) -> None:
        """Return the response with hits in ranking order."""
        hits = [{"slug": "b", "title": "B"}, {"slug": "a", "title": "A"}]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"hits": hits, "query": "x"})

        response = await make_client(handler).search("x")

        assert [hit["slug"] for hit in response["hits"]] == ["b", "a"]

    @pytest.mark.asyncio
    async def test__missing_hits__raises_error(self) -> None:
        """Reject a response without a hit list."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"message": "ok"})

        with pytest.raises(MeilisearchError, match="missing hits"):
            await make_client(handler).search("x")

    @pytest.mark.asyncio
    async def test__error_status__raises_http_error(self) -> None:
        """Raise for error status codes."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "unavailable"})

        with pytest.raises(httpx.HTTPStatusError):
            await make_client(handler).search("x")


class TestDocuments:
    """Tests for document and settings management."""

    @pytest.mark.asyncio
    async def test__add_documents__posts_with_primary_key(self) -> None:
        """Post documents with the primary key parameter."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202, json={"taskUid": 1, "status": "enqueued", "type": "x"})

        task = await make_client(handler).add_documents([{"id": "1"}])

        assert task["taskUid"] == 1
        assert requests[0].url.path == "/indexes/docs/documents"
        assert requests[0].url.params["primaryKey"] == "id"
        assert json.loads(requests[0].content) == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test__delete_all_documents__sends_delete(self) -> None:
        """Delete all documents of the index."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202, json={"taskUid": 2, "status": "enqueued", "type": "x"})

        await make_client(handler).delete_all_documents()

        assert requests[0].method == "DELETE"
        assert requests[0].url.path == "/indexes/docs/documents"

    @pytest.mark.asyncio
    async def test__update_settings__sends_patch(self) -> None:
        """Patch the index settings."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202, json={"taskUid": 3, "status": "enqueued", "type": "x"})

        await make_client(handler).update_settings({"filterableAttributes": ["category"]})

        assert requests[0].method == "PATCH"
        assert requests[0].url.path == "/indexes/docs/settings"
        assert json.loads(requests[0].content) == {"filterableAttributes": ["category"]}


class TestWaitForTask:
    """Tests for MeilisearchClient.wait_for_task()."""

    @pytest.mark.asyncio
    async def test__succeeded__returns_task(self) -> None:
        """Poll until the task succeeds."""
        statuses = iter(["enqueued", "processing", "succeeded"])

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/tasks/7"
            return httpx.Response(200, json={"uid": 7, "status": next(statuses), "type": "x"})

        task = await make_client(handler).wait_for_task(
            {"taskUid": 7, "status": "enqueued", "type": "x"},
            interval=0,
        )

        assert task["status"] == "succeeded"

    @pytest.mark.asyncio
    async def test__failed__raises_with_code(self) -> None:
        """Raise with the task error message and code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "uid": 8,
                    "status": "failed",
                    "type": "x",
                    "error": {"message": "bad document", "code": "invalid_document_id"},
                },
            )

        with pytest.raises(MeilisearchError, match="bad document") as exc_info:
            await make_client(handler).wait_for_task({"taskUid": 8, "status": "enqueued", "type": "x"})

        assert exc_info.value.code == "invalid_document_id"

    @pytest.mark.asyncio
    async def test__never_finishes__raises_timeout(self) -> None:
        """Give up once the timeout has elapsed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"uid": 9, "status": "processing", "type": "x"})

        with pytest.raises(MeilisearchError, match="did not finish"):
            await make_client(handler).wait_for_task(
                {"taskUid": 9, "status": "enqueued", "type": "x"},
                timeout=0,
                interval=0,
            )

    @pytest.mark.asyncio
    async def test__no_uid__raises_error(self) -> None:
        """Reject a task without a uid."""
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(MeilisearchError, match="no uid"):
            await client.wait_for_task({"status": "enqueued", "type": "x"})


class TestSearchHitValidation:
    """Tests for hit validation in MeilisearchClient.search()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "hits",
        [
            ["not a hit"],
            [{"title": "No slug"}],
            [{"slug": 1, "title": "Numeric slug"}],
            [{"slug": "no-title"}],
            [{"slug": "a", "title": "A", "_formatted": "text"}],
        ],
    )
    async def test__malformed_hit__raises_error(self, hits: list[object]) -> None:
        """Reject hits lacking the fields results are built from."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"hits": hits, "query": "x"})

        with pytest.raises(MeilisearchError, match="Malformed search hit"):
            await make_client(handler).search("x")

    @pytest.mark.asyncio
    async def test__non_json_body__raises_error(self) -> None:
        """Reject a response body that is not JSON."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(MeilisearchError, match="Malformed search response"):
            await make_client(handler).search("x")

    @pytest.mark.asyncio
    async def test__minimal_hit__accepted(self) -> None:
        """Accept hits carrying only slug and title."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"hits": [{"slug": "a", "title": "A"}], "query": "x"})

        response = await make_client(handler).search("x")

        assert response["hits"] == [{"slug": "a", "title": "A"}]
