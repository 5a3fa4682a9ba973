"""Frame capturer.

Wraps the ``mss`` screen-grab primitive behind a start/stop/capture contract:
one capture session at a time, JPEG snapshots at a fixed quality, and the same
teardown path whether the user stops capturing or the display goes away.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Optional

import mss
from mss.exception import ScreenShotError
from PIL import Image

from . import config
from .errors import CaptureBusy, CaptureEnded, CaptureUnsupported, FrameNotReady, PermissionDenied
from .schemas import Snapshot


class CaptureStream:
    """Handle to an active capture session (an open ``mss`` instance and one monitor)."""

    def __init__(self, sct, monitor: dict) -> None:
        self.sct = sct
        self.monitor = monitor
        self.active = True

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        self.sct.close()


class FrameCapturer:
    """Capture the screen on demand.

    Args:
        monitor: ``mss`` monitor index, 0 for the union of all displays, 1.. for one display.
        jpeg_quality: Fixed JPEG compression quality of every snapshot.
        on_ended: Called once when an active stream terminates on its own, from the thread that grabbed.
        backend: Factory returning an ``mss``-compatible grabber.
    """

    def __init__(
        self,
        monitor: int = config.MONITOR_INDEX,
        jpeg_quality: int = config.JPEG_QUALITY,
        on_ended: Optional[Callable[[], None]] = None,
        backend: Callable = mss.mss,
    ) -> None:
        self.monitor = monitor
        self.jpeg_quality = jpeg_quality
        self.on_ended = on_ended
        self._backend = backend
        self._stream: Optional[CaptureStream] = None
        self.logger = logging.getLogger("Capture")

    @property
    def is_capturing(self) -> bool:
        return self._stream is not None and self._stream.active

    def start(self) -> CaptureStream:
        """Open the capture session.

        Raises:
            CaptureBusy: a session is already running; call ``stop()`` first.
            CaptureUnsupported: no display or screen-grab backend is available.
            PermissionDenied: the display refused the first grab.
        """
        if self.is_capturing:
            raise CaptureBusy()

        try:
            sct = self._backend()
        except ScreenShotError as exc:
            raise CaptureUnsupported(str(exc)) from exc

        monitors = sct.monitors
        if not monitors:
            sct.close()
            raise CaptureUnsupported("No display found")

        idx = self.monitor if 0 <= self.monitor < len(monitors) else 0
        stream = CaptureStream(sct, monitors[idx])

        # grab once so a refusal surfaces here rather than on the first snapshot
        try:
            sct.grab(stream.monitor)
        except ScreenShotError as exc:
            stream.close()
            raise PermissionDenied(str(exc)) from exc

        self._stream = stream
        self.logger.info(f"Screen capture started on monitor {idx}")
        return stream

    def stop(self) -> None:
        """Release the capture session. Safe to call repeatedly."""
        if self._stream is None:
            return
        self._stream.close()
        self._stream = None
        self.logger.info("Screen capture stopped")

    def capture_frame(self, stream: Optional[CaptureStream] = None) -> Snapshot:
        """Grab the current screen as a JPEG snapshot.

        Raises:
            FrameNotReady: capture is not running or the frame has no pixels yet.
            CaptureEnded: the stream terminated; the session has been torn down.
        """
        stream = stream or self._stream
        if stream is None or not stream.active:
            raise FrameNotReady("Screen capture is not running")

        try:
            shot = stream.sct.grab(stream.monitor)
        except ScreenShotError as exc:
            self._ended(stream)
            raise CaptureEnded(str(exc)) from exc

        if not shot.width or not shot.height:
            raise FrameNotReady()

        img = Image.frombytes("RGB", (shot.width, shot.height), shot.rgb)
        buf = io.BytesIO()
        img.save(buf, "JPEG", quality=self.jpeg_quality)
        return Snapshot.from_jpeg(buf.getvalue(), shot.width, shot.height)

    def _ended(self, stream: CaptureStream) -> None:
        self.logger.warning("Screen capture stream ended")
        if stream is self._stream:
            self.stop()
        else:
            stream.close()
        if self.on_ended is not None:
            self.on_ended()
