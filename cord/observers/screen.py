#!/usr/bin/env python3
"""Periodic screen observer - captures the shared screen on a fixed interval.

Each capture is emitted as a ``Snapshot`` on ``update_queue``. Change detection
is left to the consumer; identical frames are emitted too.
"""

from __future__ import annotations

###############################################################################
# Imports                                                                     #
###############################################################################

# — Standard library —
import asyncio
import logging

# — Local —
from .observer import Observer
from .. import config
from ..capture import FrameCapturer
from ..errors import CaptureEnded, FrameNotReady

###############################################################################
# Constants                                                                   #
###############################################################################

SHORT_SLEEP_SEC = 0.5  # retry delay while no frame has been decoded yet


###############################################################################
# Screen observer                                                             #
###############################################################################


class Screen(Observer):
    """Observer that snapshots the screen every ``interval`` seconds.

    The capturer must already be started. When the stream ends (display gone,
    sharing revoked) the worker stops and ``ended`` is set.

    Args:
        capturer: A started ``FrameCapturer``.
        interval: Seconds between captures.
        debug: Log every capture.
    """

    def __init__(
        self,
        capturer: FrameCapturer,
        interval: float = config.CAPTURE_INTERVAL_SEC,
        debug: bool = False,
    ) -> None:
        self.capturer = capturer
        self.interval = interval
        self.debug = debug
        self.ended = asyncio.Event()
        self.logger = logging.getLogger("Screen")
        super().__init__()

    # ─────────────────────────────── Main worker

    async def _worker(self) -> None:
        self.logger.info(f"Screen observer started, capturing every {self.interval}s")

        while self._running:
            try:
                # grab and JPEG encode run off the loop
                snapshot = await asyncio.to_thread(self.capturer.capture_frame)
            except FrameNotReady:
                await asyncio.sleep(SHORT_SLEEP_SEC)
                continue
            except CaptureEnded:
                self.logger.warning("Screen sharing ended, stopping observer")
                self.ended.set()
                break

            if self.debug:
                self.logger.info(f"Captured {snapshot.width}x{snapshot.height} frame")
            await self.update_queue.put(snapshot)

            await asyncio.sleep(self.interval)

        self.logger.info("Screen observer stopped.")
