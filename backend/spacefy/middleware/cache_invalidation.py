"""Cache invalidation middleware.

After a successful (2xx/3xx) POST, PUT, PATCH or DELETE, queue an
invalidation for the matched route's request shape. The response is sent
without waiting for the invalidation to run.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.config import settings
from ..services.cache_tags import RequestShape

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CacheInvalidationMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        if request.method not in MUTATING_METHODS or not 200 <= response.status_code < 400:
            return response

        worker = getattr(request.app.state, "invalidation_worker", None)
        if worker is None or "route" not in request.scope:
            return response

        shape = RequestShape.from_scope(request.scope, settings.api_prefix)
        try:
            worker.submit(shape)
        except Exception:
            logger.exception("Could not queue cache invalidation", extra={"entity": shape.route_entity})
        return response
