"""Mouse/interaction tracker.

Keeps the most recent pointer positions and clicks in fixed-capacity buffers so
prompts can mention where the user is pointing. Purely additive context, never
used for control flow.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, List, Optional

from .. import config
from ..schemas import ClickEvent, MouseContext, MousePosition

_BUTTONS = ("left", "right", "middle")


class MouseTracker:
    """Record pointer movement and clicks from a ``pynput`` listener.

    Args:
        max_history: Capacity of the position and click buffers.
        clock: Time source, seconds since the epoch.
    """

    def __init__(
        self,
        max_history: int = config.MOUSE_HISTORY_LEN,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._positions: deque[MousePosition] = deque(maxlen=max_history)
        self._clicks: deque[ClickEvent] = deque(maxlen=max_history)
        self._clock = clock
        self._listener = None
        self.logger = logging.getLogger("Mouse")

    # ─────────────────────────────── Tracking control

    @property
    def is_tracking(self) -> bool:
        return self._listener is not None

    def start(self) -> None:
        if self._listener is not None:
            return
        from pynput import mouse  # needs a display; imported on use

        self._listener = mouse.Listener(on_move=self.record_move, on_click=self._on_click)
        self._listener.start()
        self.logger.info("Mouse tracking started")

    def stop(self) -> None:
        if self._listener is None:
            return
        self._listener.stop()
        self._listener = None
        self.logger.info("Mouse tracking stopped")

    # ─────────────────────────────── Recording (listener thread)

    def record_move(self, x: float, y: float) -> None:
        self._positions.append(MousePosition(x=x, y=y, timestamp=self._clock()))

    def record_click(self, x: float, y: float, button: str = "left") -> None:
        self._clicks.append(ClickEvent(x=x, y=y, timestamp=self._clock(), button=button))

    def _on_click(self, x, y, button, pressed) -> None:
        # count a click once, on press
        name = getattr(button, "name", "")
        if pressed and name in _BUTTONS:
            self.record_click(x, y, name)

    # ─────────────────────────────── Queries

    def current_position(self) -> Optional[MousePosition]:
        return self._positions[-1] if self._positions else None

    def recent_positions(self, seconds: float = 5) -> List[MousePosition]:
        cutoff = self._clock() - seconds
        return [p for p in list(self._positions) if p.timestamp > cutoff]

    def recent_clicks(self, seconds: float = 10) -> List[ClickEvent]:
        cutoff = self._clock() - seconds
        return [c for c in list(self._clicks) if c.timestamp > cutoff]

    def snapshot(
        self,
        path_seconds: float = config.MOUSE_PATH_SEC,
        click_seconds: float = config.MOUSE_CLICKS_SEC,
    ) -> MouseContext:
        return MouseContext(
            current_position=self.current_position(),
            recent_path=self.recent_positions(path_seconds),
            recent_clicks=self.recent_clicks(click_seconds),
            is_active=self.is_tracking,
        )

    def clear(self) -> None:
        self._positions.clear()
        self._clicks.clear()
