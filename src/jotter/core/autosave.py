"""Periodic auto-save loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

SaveCallback = Callable[[], Awaitable[None]]


class AutoSaveState(str, Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class AutoSaveScheduler:
    callback: SaveCallback
    interval_s: float = 30.0

    _state: AutoSaveState = AutoSaveState.STOPPED
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    _task: asyncio.Task[None] | None = None

    @property
    def state(self) -> AutoSaveState:
        return self._state

    def start(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            return self._task
        self._begin()
        self._task = asyncio.create_task(self.run(), name="autosave")
        return self._task

    async def run(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.current_task()
        if self._state is AutoSaveState.STOPPED:
            self._begin()
        logger.info("Auto-save started (every %ss)", self.interval_s)
        try:
            while self._state is AutoSaveState.RUNNING:
                if await self._wait_interval():
                    break
                # No await between this check and the call: a stop seen here is final.
                if self._state is not AutoSaveState.RUNNING:
                    break
                await self._save()
        finally:
            self._state = AutoSaveState.STOPPED
            logger.info("Auto-save stopped")

    def _begin(self) -> None:
        self._stop_event.clear()
        self._state = AutoSaveState.RUNNING

    def stop(self) -> None:
        if self._state is AutoSaveState.RUNNING:
            self._state = AutoSaveState.STOPPING
        self._stop_event.set()

    async def shutdown(self, grace_s: float = 5.0) -> bool:
        """Stop the loop and wait up to ``grace_s`` for it to finish.

        Returns ``False`` when a save was still running after the grace
        period; that save keeps going to completion in the background.
        """
        self.stop()
        task = self._task
        if task is None or task.done():
            self._state = AutoSaveState.STOPPED
            return True
        done, _pending = await asyncio.wait({task}, timeout=grace_s)
        if not done:
            logger.warning("Auto-save still busy after %ss grace period", grace_s)
        self._state = AutoSaveState.STOPPED
        return bool(done)

    async def _wait_interval(self) -> bool:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_s)
        except TimeoutError:
            return False
        return True

    async def _save(self) -> None:
        logger.debug("Auto-saving")
        try:
            await self.callback()
        except Exception:
            logger.exception("Auto-save callback failed")
