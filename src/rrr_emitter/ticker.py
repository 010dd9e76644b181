"""
Optional background ticker.

Hosts that have no periodic timer of their own can use ``Ticker`` to call
``emitter.tick()`` on an interval from an asyncio task.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

from .emitter import RRREmitter


class Ticker:
    """Drive ``emitter.tick()`` every ``interval`` seconds.

    Example:
        async with Ticker(emitter, interval=0.2):
            ...
    """

    def __init__(self, emitter: RRREmitter, interval: float = 0.2):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._emitter = emitter
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> "Ticker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run())
        logger.debug(f"Ticker started for emitter {self._emitter.name} (interval={self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop.set()
        await self._task
        self._task = None
        logger.debug(f"Ticker stopped for emitter {self._emitter.name}")

    async def _run(self) -> None:
        while not self._stop.is_set():
            self._emitter.tick()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
