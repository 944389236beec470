"""Application keys for type-safe app configuration access."""

from aiohttp import web

from docshelf.core.cache import Documentation
from docshelf.core.search import SearchService

documentation_key = web.AppKey("documentation", Documentation)
search_key = web.AppKey("search", SearchService)
