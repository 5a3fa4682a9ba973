# guide.py
# Wires capture, auxiliary collectors, planner and verifier into one live guidance session

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from . import config
from .capture import FrameCapturer
from .context import ContextCollector
from .detector import UIElementDetector
from .observers.mouse import MouseTracker
from .observers.screen import Screen
from .planner import StepPlanner
from .schemas import GuidanceProgress, Judgment, Snapshot
from .verifier import StepVerifier
from .vision import VisionClient


def drain_latest(queue: asyncio.Queue, first: Snapshot) -> Snapshot:
    """Skip frames that queued up behind ``first``; only the newest screen matters."""
    latest = first
    while True:
        try:
            latest = queue.get_nowait()
        except asyncio.QueueEmpty:
            return latest


class Guide:
    """Live step-by-step guidance toward ``goal``.

    Use as an async context manager: entering starts screen capture (and mouse
    tracking when a tracker is given), exiting tears everything down.

        async with Guide("create an account") as guide:
            await guide.run_until_done()

    Args:
        goal: The user's objective.
        vision: Vision client; built from ``model_name`` when omitted.
        capturer: Frame capturer; a default ``FrameCapturer`` when omitted.
        detector: Optional UI element detector.
        tracker: Optional mouse tracker.
        capture_interval: Seconds between screen captures.
        on_complete: Called once when every step is verified.
        on_update: Called with the session progress after every transition.
    """

    def __init__(
        self,
        goal: str,
        vision: Optional[VisionClient] = None,
        model_name: str = config.DEFAULT_MODEL,
        capturer: Optional[FrameCapturer] = None,
        detector: Optional[UIElementDetector] = None,
        tracker: Optional[MouseTracker] = None,
        capture_interval: float = config.CAPTURE_INTERVAL_SEC,
        min_verify_interval: float = config.MIN_VERIFY_INTERVAL_SEC,
        on_complete: Optional[Callable[[], None]] = None,
        on_update: Optional[Callable[[GuidanceProgress], None]] = None,
        debug: bool = False,
    ) -> None:
        self.vision = vision or VisionClient(model_name=model_name)
        self.capturer = capturer or FrameCapturer()
        self.tracker = tracker
        self.collector = ContextCollector(detector=detector, tracker=tracker)
        self.planner = StepPlanner(self.vision, self.collector)
        self.verifier = StepVerifier(
            self.planner,
            self.vision,
            goal=goal,
            collector=self.collector,
            on_complete=on_complete,
            on_update=on_update,
            min_verify_interval=min_verify_interval,
        )
        self.capture_interval = capture_interval
        self.debug = debug
        self.screen: Optional[Screen] = None
        self._update_task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger("Guide")

    # ─────────────────────────────── Lifecycle

    async def __aenter__(self) -> "Guide":
        self.capturer.start()  # PermissionDenied / CaptureUnsupported propagate to the caller
        if self.tracker is not None:
            self.tracker.start()
        self.screen = Screen(self.capturer, interval=self.capture_interval, debug=self.debug)
        self._update_task = asyncio.create_task(self._update_loop())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._update_task is not None:
            self._update_task.cancel()
            try:
                await self._update_task
            except asyncio.CancelledError:
                pass
            self._update_task = None
        if self.screen is not None:
            await self.screen.stop()
            self.screen = None
        if self.tracker is not None:
            self.tracker.stop()
        self.capturer.stop()

    async def _update_loop(self) -> None:
        queue = self.screen.update_queue
        while True:
            snapshot = drain_latest(queue, await queue.get())
            await self.verifier.observe(snapshot)

    async def run_until_done(self) -> bool:
        """Wait until every step is verified (True) or screen sharing ends (False)."""
        finished = asyncio.create_task(self.verifier.finished.wait())
        ended = asyncio.create_task(self.screen.ended.wait())
        done, pending = await asyncio.wait({finished, ended}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        return finished in done

    # ─────────────────────────────── User actions

    async def verify_now(self) -> Optional[Judgment]:
        return await self.verifier.verify_now()

    async def retry_planning(self) -> None:
        await self.verifier.plan()

    def toggle_pause(self) -> None:
        self.verifier.toggle_pause()

    def reset(self) -> None:
        self.verifier.reset()

    def progress(self) -> GuidanceProgress:
        return self.verifier.progress()
