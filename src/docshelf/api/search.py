"""Search API endpoint.

Returns a JSON array of results; upstream index failures are handled by
SearchService and never reach the client.
"""

from aiohttp import web

from docshelf.app_keys import search_key


def create_search_routes() -> list[web.RouteDef]:
    return [web.get("/api/search", search)]


async def search(request: web.Request) -> web.Response:
    query = request.query.get("q", "")
    results = await request.app[search_key].search(query)
    return web.json_response([result.to_dict() for result in results])
