"""Read-through response caching for GET routes.

Usage:

    router = APIRouter(prefix="/branches", route_class=CachedRoute)

    @router.get("", dependencies=[
        Depends(require_permission("VIEW-BRANCHES")),
        Depends(cache_response(list_cache_key("branches"), CacheCategory.LIST)),
    ])

``cache_response`` must come after the permission dependency: a cache hit
short-circuits the handler, so authorization has to have run already.
On a miss the handler runs and ``CachedRoute`` stores the 200 response,
indexed under the tags of the request shape.
"""

from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.responses import Response

from ..core.config import settings
from ..services.cache_service import CacheCategory
from ..services.cache_tags import RequestShape

KeyBuilder = Callable[[Request], str]

DEFAULT_PAGE = "1"
DEFAULT_LIMIT = "10"
DEFAULT_SORT = "created_at"
DEFAULT_ORDER = "desc"


class CacheHit(Exception):
    """Raised by ``cache_response`` to short-circuit the handler with a cached body."""

    def __init__(self, body: dict):
        super().__init__("cache hit")
        self.body = body


def _engine(request: Request):
    return getattr(request.app.state, "cache_engine", None)


def cache_response(key_builder: KeyBuilder, category: CacheCategory) -> Callable:
    async def _lookup(request: Request) -> None:
        engine = _engine(request)
        if engine is None:
            return
        key = key_builder(request)
        cached = await engine.lookup(key)
        if cached is not None:
            raise CacheHit(cached)
        request.state.cache_key = key
        request.state.cache_ttl = engine.ttl_for(category)

    return _lookup


class CachedRoute(APIRoute):
    """APIRoute that serves ``CacheHit`` bodies and stores cacheable responses."""

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def cached_route_handler(request: Request) -> Response:
            try:
                response = await original_route_handler(request)
            except CacheHit as hit:
                return JSONResponse(status_code=200, content={**hit.body, "source": "cache"})

            key = getattr(request.state, "cache_key", None)
            engine = _engine(request)
            body = getattr(response, "body", None)
            if key and body and engine is not None and response.status_code == 200:
                shape = RequestShape.from_scope(request.scope, settings.api_prefix)
                await engine.remember(key, body, request.state.cache_ttl, shape)
            return response

        return cached_route_handler


# --- Key builders ---


def list_cache_key(entity: str, *path_params: str, filters: tuple = ()) -> KeyBuilder:
    """``<entity>:<param>=<value>:...:page=1:limit=10:sort=created_at:order=desc``.

    *filters* names query parameters that narrow the listing; each is keyed
    as ``<name>=<value>`` (``all`` when absent) after the path parameters.
    """

    def _build(request: Request) -> str:
        q = request.query_params
        parts = [entity]
        parts += [f"{p}={request.path_params.get(p, 'all')}" for p in path_params]
        parts += [f"{f}={q.get(f) or 'all'}" for f in filters]
        parts += [
            f"page={q.get('page') or DEFAULT_PAGE}",
            f"limit={q.get('limit') or DEFAULT_LIMIT}",
            f"sort={q.get('sort') or DEFAULT_SORT}",
            f"order={q.get('order') or DEFAULT_ORDER}",
        ]
        return ":".join(parts)

    return _build


def item_cache_key(name: str, param: str) -> KeyBuilder:
    """``<name>:<path param value>``, e.g. ``branch:3f2a...``."""

    def _build(request: Request) -> str:
        return f"{name}:{request.path_params[param]}"

    return _build
