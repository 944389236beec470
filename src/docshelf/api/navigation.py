"""Navigation API endpoint."""

from aiohttp import web

from docshelf.app_keys import documentation_key


def create_navigation_routes() -> list[web.RouteDef]:
    return [web.get("/api/navigation", get_navigation)]


async def get_navigation(request: web.Request) -> web.Response:
    documentation = request.app[documentation_key]
    nav_items = documentation.navigation()
    return web.json_response({"items": [item.to_dict() for item in nav_items]})
