"""
arena/clock.py - Periodic settlement of expired arenas.

A coarse scan on a fixed cadence rather than one timer per arena: worst-case
resolution latency is one tick interval.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from ragebait.resolution import Resolution, resolve_arena

from .store import ArenaStore

logger = logging.getLogger(__name__)

SettledCallback = Callable[[list[Resolution]], Awaitable[None]]


class SettlementClock:
    """Resolves every due arena exactly once."""

    def __init__(
        self,
        store: ArenaStore,
        interval: float = 1.0,
        now: Callable[[], float] = time.time,
        on_resolution: Callable[[Resolution], None] | None = None,
    ):
        self.store = store
        self.interval = interval
        self._now = now
        self._on_resolution = on_resolution
        self.ticks = 0

    def tick(self, now: float | None = None) -> list[Resolution]:
        """Resolve all arenas whose deadline is at or before `now`.

        Returns the resolutions applied this tick (possibly none). Resolved
        arenas are never due again, so repeated ticks are harmless.
        """
        if now is None:
            now = self._now()
        self.ticks += 1

        resolutions = []
        for arena in self.store.due(now):
            resolution = resolve_arena(arena)
            self.store.mark_resolved(arena.id, resolution, now)
            if self._on_resolution is not None:
                self._on_resolution(resolution)
            resolutions.append(resolution)

        if resolutions:
            logger.info(f"Tick {self.ticks}: resolved {len(resolutions)} arena(s)")
        return resolutions

    async def run(self, on_settled: SettledCallback) -> None:
        """Tick forever. Awaits `on_settled` only for ticks that changed something.

        Cancel the task to stop. A failing tick is logged and the loop goes on.
        """
        logger.info(f"Settlement clock started (every {self.interval}s)")
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    resolutions = self.tick()
                    if resolutions:
                        await on_settled(resolutions)
                except Exception as e:
                    logger.exception(f"Settlement tick failed: {e}")
        finally:
            logger.info("Settlement clock stopped")
