"""Base class for background observers.

An observer runs one asyncio worker task and hands what it observes to its
consumer through ``update_queue``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional


class Observer(ABC):
    """Start a worker task on construction; ``stop()`` cancels it.

    Must be created from inside a running event loop.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self._name = name or self.__class__.__name__
        self.update_queue: asyncio.Queue = asyncio.Queue()
        self._running = True
        self._task: Optional[asyncio.Task] = asyncio.create_task(self._worker())

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    async def _worker(self) -> None:
        """Produce updates until ``self._running`` is cleared."""

    async def get_update(self) -> Optional[Any]:
        """Return the next pending update without waiting, or ``None``."""
        try:
            return self.update_queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def stop(self) -> None:
        self._running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
