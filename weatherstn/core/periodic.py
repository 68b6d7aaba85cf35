from __future__ import annotations

import asyncio
import enum
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class LoopState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PeriodicTask:
    """Runs ``tick()`` every ``interval`` seconds on a background asyncio task.

    Stopping is a handshake: ``stop()`` sets the halt event and then waits for
    the loop to leave, so no tick is ever abandoned half way. After each wait
    the halt event is checked before ticking again, so a short interval can
    never starve a pending stop.
    """

    name = "periodic"
    tick_on_start = False

    def __init__(self, interval: float) -> None:
        self._interval = float(interval)
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self.state = LoopState.IDLE

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    async def tick(self) -> None:
        raise NotImplementedError

    async def start(self, interval: Optional[float] = None) -> None:
        if self.state in (LoopState.RUNNING, LoopState.STOPPING):
            raise RuntimeError(f"{self.name} loop already running")
        if interval is not None:
            self._interval = float(interval)
        self._stop = asyncio.Event()
        self.state = LoopState.RUNNING
        self._task = asyncio.create_task(self._run(), name=f"{self.name}_loop")

    async def stop(self) -> None:
        if self._task is None:
            logger.debug("%s loop not running, nothing to stop", self.name)
            return
        self.state = LoopState.STOPPING
        self._stop.set()
        try:
            await self._task
        finally:
            self._task = None
            self.state = LoopState.STOPPED

    async def _run(self) -> None:
        logger.info("%s loop started (interval=%ss)", self.name, self._interval)

        if self.tick_on_start:
            await self._guarded_tick()

        while True:
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

            if self._stop.is_set():
                break

            await self._guarded_tick()

        logger.info("%s loop stopped", self.name)

    async def _guarded_tick(self) -> None:
        try:
            await self.tick()
        except Exception as e:
            logger.exception("%s loop error: %s", self.name, e)
