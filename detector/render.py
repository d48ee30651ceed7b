"""
Render loop: copy the newest camera frame onto the display surface every tick.

Cancellation is cooperative. Each iteration first checks ``session.is_live``
and returns silently once the session has stopped; the task is never
cancelled from outside. The blocking device read runs in a worker thread,
so liveness is checked again after it returns: a frame read across a
``stop()`` is dropped, never painted.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from detector.camera import CameraSession
from detector.display import DisplaySurface

logger = logging.getLogger(__name__)

# After this many consecutive failures, drop per-frame logs to DEBUG
_LOUD_FAILURES = 3


class RenderLoop:
    def __init__(self, session: CameraSession, surface: DisplaySurface, fps: float = 30.0):
        self.session = session
        self.surface = surface
        self.interval = 1.0 / float(fps)
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def wait(self) -> None:
        """Wait for the loop to notice the session stopped and exit on its own."""
        if self._task is not None:
            await self._task

    async def tick(self) -> bool:
        """One iteration without the sleep. Returns False when the loop should end."""
        if not self.session.is_live:
            return False
        try:
            raw = await asyncio.to_thread(self.session.read_raw)
            if not self.session.is_live:
                return False
            frame = self.session.accept(raw)
            self.surface.paint(frame)
            self.failures = 0
        except Exception as e:
            self.failures += 1
            if self.failures <= _LOUD_FAILURES:
                logger.warning(f"[render] tick failed ({self.failures} in a row): {e}")
            else:
                logger.debug(f"[render] tick failed ({self.failures} in a row): {e}")
        self.ticks += 1
        return True

    async def run(self) -> None:
        logger.debug(f"[render] loop started interval={self.interval:.3f}s")
        while await self.tick():
            await asyncio.sleep(self.interval)
        logger.debug(f"[render] loop exited after {self.ticks} ticks")
