# context.py
# Merges OCR text with the optional auxiliary collectors into one prompt context

from __future__ import annotations

from typing import Optional

from .detector import UIElementDetector
from .observers.mouse import MouseTracker
from .schemas import AuxiliaryContext, Snapshot


class ContextCollector:
    """Gather supplementary context for planner and verifier prompts.

    Both collectors are optional; a missing or disabled detector leaves
    ``ui_elements`` unset, a missing tracker leaves ``mouse`` unset.
    """

    def __init__(
        self,
        detector: Optional[UIElementDetector] = None,
        tracker: Optional[MouseTracker] = None,
    ) -> None:
        self.detector = detector
        self.tracker = tracker

    async def gather(self, snapshot: Snapshot, ocr_text: str = "") -> AuxiliaryContext:
        ui_elements = None
        if self.detector is not None and self.detector.enabled:
            ui_elements = await self.detector.adetect(snapshot)

        mouse = self.tracker.snapshot() if self.tracker is not None else None

        return AuxiliaryContext(ocr_text=ocr_text, ui_elements=ui_elements, mouse=mouse)
