from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger("interview_assistant.interview.timer")


class Countdown:
    """
    Repeating one-second callback for a single session.

    At most one loop runs at a time: start() replaces any running loop.
    cancel() issued from inside the callback lets the callback finish and
    stops the loop afterwards.
    """

    def __init__(self, on_tick: Callable[[], Awaitable[object]], interval_sec: float = 1.0, name: str = "countdown"):
        self._on_tick = on_tick
        self._interval_sec = max(0.001, float(interval_sec))
        self._name = name
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _run(self) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(self._interval_sec)
            if self._task is not me:
                break
            try:
                await self._on_tick()
            except Exception:
                logger.exception("countdown tick failed | name=%s", self._name)
                if self._task is me:
                    self._task = None
                break
