"""Background cache invalidation.

Mutating requests enqueue a ``RequestShape`` and return immediately; a single
asyncio task drains the queue and runs ``CacheEngine.invalidate``. Failures
are logged with traceback and never reach the client.
"""

import asyncio
import logging
from typing import Optional

from .logging_config import request_id_var
from ..services.cache_service import CacheEngine
from ..services.cache_tags import RequestShape

logger = logging.getLogger(__name__)


class InvalidationWorker:
    def __init__(self, engine: CacheEngine):
        self.engine = engine
        self._queue: "asyncio.Queue[tuple[RequestShape, str]]" = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="cache-invalidation")
        logger.info("Cache invalidation worker started")

    def submit(self, shape: RequestShape) -> None:
        """Queue an invalidation. Never blocks, never raises on a healthy queue."""
        self._queue.put_nowait((shape, request_id_var.get("")))

    async def run(self) -> None:
        while True:
            shape, request_id = await self._queue.get()
            token = request_id_var.set(request_id)
            try:
                await self.engine.invalidate(shape)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Cache invalidation failed",
                    extra={"entity": shape.route_entity, "params": dict(shape.params)},
                )
            finally:
                request_id_var.reset(token)
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued invalidation has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Finish queued work, then cancel the worker task."""
        if self._task is None:
            return
        if self.running:
            await self.join()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache invalidation worker stopped")
