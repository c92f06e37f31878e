from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from core.logger import log_event
from interview_assistant.system_metrics import increment_metric

logger = logging.getLogger("interview_assistant.interview.background")

ErrorHook = Callable[[str, BaseException, str], None]


def report_background_failure(kind: str, exc: BaseException, session_id: str) -> None:
    increment_metric("background_failures")
    logger.warning("background task failed | kind=%s session_id=%s err=%s", kind, session_id, exc)
    log_event("background", "task_failed", session_id, kind=kind, error=repr(exc))


class BackgroundTasks:
    """One-way tasks. Failures go to `on_error` and are never re-raised."""

    def __init__(self, on_error: ErrorHook | None = None):
        self.on_error = on_error or report_background_failure
        self.tasks: set[asyncio.Task] = set()

    def dispatch(self, kind: str, session_id: str, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self.tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self.tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                self.on_error(kind, exc, session_id)

        task.add_done_callback(_done)
        return task

    async def drain(self) -> None:
        while self.tasks:
            await asyncio.gather(*list(self.tasks), return_exceptions=True)

    async def stop(self) -> None:
        for task in list(self.tasks):
            task.cancel()
        await asyncio.gather(*list(self.tasks), return_exceptions=True)
        self.tasks.clear()
