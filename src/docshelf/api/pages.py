"""Pages API endpoint.

Handles page rendering and returns JSON responses with metadata, breadcrumbs,
ToC, and HTML content.
"""

from datetime import UTC, datetime
from email.utils import format_datetime
from hashlib import md5

from aiohttp import web

from docshelf.app_keys import documentation_key
from docshelf.core.navigation import find_trail


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/pages", get_page),
        web.get("/api/pages/{path:.*}", get_page),
    ]


async def get_page(request: web.Request) -> web.Response:
    path = request.match_info.get("path", "").strip("/")
    documentation = request.app[documentation_key]

    document = documentation.document(path)
    if document is None:
        return web.json_response(
            {"error": "Page not found", "path": path},
            status=404,
        )

    etag = _compute_etag(document.html)

    if_none_match = request.headers.get("If-None-Match")
    if if_none_match == etag:
        return web.Response(status=304)

    last_modified = datetime.fromtimestamp(document.updated_at, tz=UTC)
    breadcrumbs = [b.to_dict() for b in find_trail(documentation.navigation(), path)]

    response_data = {
        "meta": {
            "title": document.title,
            "slug": path,
            "source_file": str(document.source_path),
            "last_modified": last_modified.isoformat(),
            "updated_at": document.updated_at,
        },
        "breadcrumbs": breadcrumbs,
        "toc": [entry.to_dict() for entry in document.toc],
        "content": document.html,
    }

    return web.json_response(
        response_data,
        headers={
            "ETag": etag,
            "Last-Modified": format_datetime(last_modified, usegmt=True),
            "Cache-Control": "private, max-age=60",
        },
    )


def _compute_etag(content: str) -> str:
    # First 16 hex chars (64 bits) are enough to detect changed content
    content_hash = md5(content.encode("utf-8"), usedforsecurity=False).hexdigest()[:16]
    return f'"{content_hash}"'
