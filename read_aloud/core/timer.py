"""Periodic auto-capture timer.

WHY: Auto-capture re-checks every couple of seconds whether a new frame
may be taken. The period is independent of how long a cycle takes, so
a new cycle starts soon after the previous frame's speech ends.

HOW: An asyncio task on the controller's event loop sleeps for the
interval and calls controller.on_timer_tick(). Because ticks run on the
same loop as every other controller call, they are serialized with
manual triggers and API requests.

RULES:
- The first tick fires immediately after start()
- A tick never waits for the cycle it started
- stop() cancels the timer task only; an in-flight cycle runs to completion
- start() and stop() are idempotent
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from read_aloud.config import DEFAULT_CAPTURE_INTERVAL_MS
from read_aloud.core.controller import CaptureCycleController

logger = logging.getLogger(__name__)


class AutoCaptureTimer:
    def __init__(
        self,
        controller: CaptureCycleController,
        interval_ms: int = DEFAULT_CAPTURE_INTERVAL_MS,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive, got {}".format(interval_ms))
        self._controller = controller
        self._interval_s = interval_ms / 1000.0
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def start(self) -> None:
        """Schedule the tick loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Auto-capture timer started (every %.2fs)", self._interval_s)

    async def stop(self) -> None:
        """Cancel the tick loop and wait for it to exit."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Auto-capture timer stopped")

    def tick(self) -> Optional[asyncio.Task]:
        self.ticks += 1
        return self._controller.on_timer_tick()

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Auto-capture tick failed")
            await asyncio.sleep(self._interval_s)
