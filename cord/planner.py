# planner.py
# Decomposes a user goal into an ordered list of verifiable steps

from __future__ import annotations

import logging
from typing import List, Optional

from .context import ContextCollector
from .errors import PlanningFailed, ProviderError
from .parsing import build_steps, parse_plan
from .prompts.steps import PLAN_PROMPT
from .schemas import Snapshot, Step
from .vision import VisionClient

MIN_PLAN_STEPS = 3
MAX_PLAN_STEPS = 7


class StepPlanner:
    """Ask the vision model for a step-by-step plan toward a goal.

    The model's format is not guaranteed, so the JSON array is the happy path and
    one-step-per-line is the recovery path. Only a provider error or a blank
    answer fails planning.

    Args:
        vision: Client used for OCR and analysis.
        collector: Optional auxiliary context (UI elements, mouse).
    """

    def __init__(self, vision: VisionClient, collector: Optional[ContextCollector] = None) -> None:
        self.vision = vision
        self.collector = collector or ContextCollector()
        self.logger = logging.getLogger("Planner")

    async def plan_steps(self, goal: str, snapshot: Snapshot) -> List[Step]:
        """Return the planned steps for ``goal`` as seen on ``snapshot``.

        Raises:
            PlanningFailed: the provider call failed or produced nothing usable.
        """
        ocr_text = await self.vision.extract_text(snapshot)
        context = await self.collector.gather(snapshot, ocr_text)

        prompt = PLAN_PROMPT.format(
            goal=goal,
            ocr_text=ocr_text,
            min_steps=MIN_PLAN_STEPS,
            max_steps=MAX_PLAN_STEPS,
        )

        try:
            response = await self.vision.analyze(snapshot, prompt, context)
        except ProviderError as exc:
            self.logger.error(f"Planning request failed: {exc}")
            raise PlanningFailed(exc.user_message) from exc

        parsed = parse_plan(response)
        if not parsed.usable:
            raise PlanningFailed("The model did not return any usable steps")

        if parsed.kind == "fallback":
            self.logger.info(f"Plan was not valid JSON, recovered {len(parsed.steps)} step(s) from text")

        steps = build_steps(parsed.steps)
        self.logger.info(f"Planned {len(steps)} step(s) for goal: {goal}")
        return steps
