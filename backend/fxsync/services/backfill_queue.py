"""
Backfill Queue

Runs per-user historical backfills in the background on a small pool of
worker tasks, so startup and API callers can hand off a user and move on.
A failing backfill is logged against its user and the worker carries on.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from fxsync.config import settings
from fxsync.services.historical_backfill import HistoricalBackfillService, get_backfill_service


@dataclass(frozen=True)
class BackfillRequest:
    user_id: int
    account_ids: Optional[tuple[int, ...]] = None


class BackfillQueue:
    """
    Background queue of backfill requests.

    Usage:
        queue = BackfillQueue(backfill_service)
        await queue.enqueue(user_id=42)
        ...
        await queue.stop()
    """

    def __init__(self, backfill_service: HistoricalBackfillService, workers: int = settings.BACKFILL_WORKERS):
        self.backfill_service = backfill_service
        self.workers = max(1, workers)
        self._queue: Optional[asyncio.Queue[BackfillRequest]] = None
        self._tasks: list[asyncio.Task] = []
        self._pending: set[BackfillRequest] = set()
        self.completed = 0
        self.failed = 0

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        """Start the worker tasks. Must be called from a running event loop."""
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"backfill-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(f"Backfill queue started with {self.workers} worker(s)")

    async def enqueue(self, user_id: int, account_ids: Optional[Sequence[int]] = None) -> bool:
        """
        Queue a backfill for a user.

        Returns:
            False if an identical request is already waiting, True otherwise
        """
        if not self.is_running:
            self.start()

        request = BackfillRequest(
            user_id=user_id,
            account_ids=tuple(account_ids) if account_ids else None,
        )
        if request in self._pending:
            logger.debug(f"Backfill for user {user_id} already queued")
            return False

        self._pending.add(request)
        await self._queue.put(request)
        logger.debug(f"Queued backfill for user {user_id}")
        return True

    async def _worker(self, index: int) -> None:
        while True:
            request = await self._queue.get()
            self._pending.discard(request)
            try:
                summary = await self.backfill_service.backfill_historical_rates(
                    request.user_id,
                    list(request.account_ids) if request.account_ids else None,
                )
                self.completed += 1
                logger.info(
                    f"Backfill worker {index} finished user {request.user_id}: "
                    f"{summary.successful}/{summary.total_pairs} pairs, "
                    f"{summary.total_rates_loaded} rates"
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed += 1
                logger.error(f"Backfill for user {request.user_id} failed: {e}")
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued request has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel the workers. Requests still waiting are dropped."""
        if not self._tasks:
            return
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._pending.clear()
        self._queue = None
        logger.info("Backfill queue stopped")


# Singleton instance
_backfill_queue: Optional[BackfillQueue] = None


def get_backfill_queue() -> BackfillQueue:
    """Get the singleton backfill queue."""
    global _backfill_queue
    if _backfill_queue is None:
        _backfill_queue = BackfillQueue(get_backfill_service())
    return _backfill_queue
