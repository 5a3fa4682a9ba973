r"""Step verifier / progress tracker.

The state machine at the heart of a guidance session::

    UNINITIALIZED -> PLANNING -> AWAITING_CHANGE -> VERIFYING -> AWAITING_CHANGE
                                                             \-> COMPLETED

``paused`` is orthogonal: it suppresses the automatic AWAITING_CHANGE ->
VERIFYING transition, manual verification stays available.

Everything runs on one asyncio loop. Only one provider round-trip (planning or
verification) is in flight at a time, and every await re-checks the session
generation so that a ``reset()`` during a pending call discards its result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from . import config
from .context import ContextCollector
from .errors import PlanningFailed, ProviderError, VerificationInconclusive
from .parsing import classify_judgment
from .planner import StepPlanner
from .prompts.steps import NEXT_STEP_GUIDANCE_PROMPT, VERIFY_PROMPT
from .schemas import AuxiliaryContext, GuidanceProgress, Judgment, Snapshot, Step
from .vision import VisionClient


class GuidanceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PLANNING = "planning"
    AWAITING_CHANGE = "awaiting_change"
    VERIFYING = "verifying"
    COMPLETED = "completed"


class StepVerifier:
    """Track progress through a planned step list, advancing on model judgments.

    Args:
        planner: Produces the step list once a goal and a snapshot are known.
        vision: Client used for verification and per-step guidance.
        goal: The user's objective. Changing it later with ``set_goal`` resets the session.
        collector: Optional auxiliary context merged into verification prompts.
        on_complete: Called exactly once per session when the last step is verified.
        on_update: Called with a ``GuidanceProgress`` after every transition.
        min_verify_interval: Minimum seconds between automatic verifications (0 disables).
        clock: Monotonic time source used by the debounce.
    """

    def __init__(
        self,
        planner: StepPlanner,
        vision: VisionClient,
        goal: str = "",
        collector: Optional[ContextCollector] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_update: Optional[Callable[[GuidanceProgress], None]] = None,
        min_verify_interval: float = config.MIN_VERIFY_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.planner = planner
        self.vision = vision
        self.collector = collector or ContextCollector()
        self.on_complete = on_complete
        self.on_update = on_update
        self.min_verify_interval = min_verify_interval
        self._clock = clock
        self.logger = logging.getLogger("Verifier")

        self.goal = goal
        self.finished = asyncio.Event()
        self._generation = 0
        self._clear()

    # ─────────────────────────────── Session lifecycle

    def _clear(self) -> None:
        self.steps: List[Step] = []
        self.current_index = 0
        self.paused = False
        self.initialized = False
        self.state = GuidanceState.UNINITIALIZED
        self.last_snapshot: Optional[Snapshot] = None
        self.last_error: Optional[str] = None
        self._planning_failed = False
        self._in_flight = False
        self._completion_fired = False
        self._last_verify_at: Optional[float] = None
        self.finished.clear()

    def reset(self) -> None:
        """Drop the session and start over. Pending provider results are discarded."""
        self._generation += 1
        self._clear()
        self.logger.info("Guidance reset")
        self._notify()

    def set_goal(self, goal: str) -> None:
        if goal == self.goal:
            return
        self.reset()
        self.goal = goal

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        return self._in_flight

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    # ─────────────────────────────── Pause control

    def pause(self) -> None:
        self.paused = True
        self._notify()

    def resume(self) -> None:
        self.paused = False
        self._notify()

    def toggle_pause(self) -> None:
        if self.paused:
            self.resume()
        else:
            self.pause()

    # ─────────────────────────────── Presentation

    def progress(self) -> GuidanceProgress:
        return GuidanceProgress(
            goal=self.goal,
            state=self.state.value,
            current_index=self.current_index,
            completed=sum(1 for s in self.steps if s.completed),
            total=len(self.steps),
            paused=self.paused,
            error=self.last_error,
            steps=[s.model_copy() for s in self.steps],
        )

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.progress())

    # ─────────────────────────────── Triggers

    async def observe(self, snapshot: Snapshot) -> Optional[Judgment]:
        """Feed a freshly captured snapshot.

        Plans on the first snapshot once a goal is set; afterwards verifies the
        current step whenever the screen changed, unless paused, debounced or a
        call is already in flight. Returns the judgment when a verification ran.
        """
        if self._in_flight:
            # dropped; last_snapshot is kept so the change is picked up once the pending call resolves
            return None

        previous = self.last_snapshot
        self.last_snapshot = snapshot

        if self.state is GuidanceState.UNINITIALIZED:
            if self.goal and not self._planning_failed:
                try:
                    await self.plan(snapshot)
                except PlanningFailed:
                    pass  # recorded in last_error, retried via plan() or reset()
            return None

        if self.state is not GuidanceState.AWAITING_CHANGE:
            return None
        if previous is None or snapshot.same_screen(previous):
            return None
        if self.paused:
            return None
        if self._debounced():
            self.last_snapshot = previous
            return None

        return await self._run_verification(snapshot)

    async def verify_now(self, snapshot: Optional[Snapshot] = None) -> Optional[Judgment]:
        """Manually verify the current step, regardless of pause state."""
        snapshot = snapshot or self.last_snapshot
        if snapshot is None or self._in_flight:
            return None
        self.last_snapshot = snapshot
        return await self._run_verification(snapshot)

    def _debounced(self) -> bool:
        if self.min_verify_interval <= 0 or self._last_verify_at is None:
            return False
        return self._clock() - self._last_verify_at < self.min_verify_interval

    # ─────────────────────────────── Planning

    async def plan(self, snapshot: Optional[Snapshot] = None) -> List[Step]:
        """Plan the session's steps (UNINITIALIZED -> PLANNING -> AWAITING_CHANGE).

        Returns the current steps unchanged when a plan already exists or a call is pending.

        Raises:
            PlanningFailed: no goal or snapshot, or the planner failed. The session stays UNINITIALIZED.
        """
        if self.initialized or self._in_flight:
            return list(self.steps)

        snapshot = snapshot or self.last_snapshot
        if not self.goal:
            raise PlanningFailed("No goal has been set")
        if snapshot is None:
            raise PlanningFailed("No screen snapshot is available yet")

        generation = self._generation
        self._in_flight = True
        self.state = GuidanceState.PLANNING
        self.last_snapshot = snapshot
        self.last_error = None
        self._planning_failed = False
        self._notify()

        steps: Optional[List[Step]] = None
        try:
            steps = await self.planner.plan_steps(self.goal, snapshot)
        except PlanningFailed as exc:
            if not self._is_stale(generation):
                self.last_error = str(exc)
                self._planning_failed = True
                self.logger.error(f"Planning failed: {exc}")
            raise
        finally:
            if not self._is_stale(generation):
                self._in_flight = False
                if steps is None:
                    self.state = GuidanceState.UNINITIALIZED
                    self._notify()

        if self._is_stale(generation):
            self.logger.info("Discarding plan from a session that was reset")
            return []

        self.steps = steps
        self.current_index = 0
        self.initialized = True
        self.state = GuidanceState.AWAITING_CHANGE
        self._notify()
        return list(self.steps)

    # ─────────────────────────────── Verification

    async def _run_verification(self, snapshot: Snapshot) -> Optional[Judgment]:
        if self._in_flight or self.state is not GuidanceState.AWAITING_CHANGE:
            return None
        if self.current_index >= len(self.steps):
            return None

        generation = self._generation
        self._in_flight = True
        self.state = GuidanceState.VERIFYING
        self._last_verify_at = self._clock()
        self._notify()

        try:
            return await self._verify_current(snapshot, generation)
        finally:
            if not self._is_stale(generation):
                self._in_flight = False
                if self.state is GuidanceState.VERIFYING:
                    self.state = GuidanceState.AWAITING_CHANGE
                self._notify()

    async def _verify_current(self, snapshot: Snapshot, generation: int) -> Optional[Judgment]:
        index = self.current_index
        step = self.steps[index]

        ocr_text = await self.vision.extract_text(snapshot)
        if self._is_stale(generation):
            return None
        context = await self.collector.gather(snapshot, ocr_text)
        if self._is_stale(generation):
            return None

        prompt = VERIFY_PROMPT.format(
            instruction=step.instruction,
            expected_change=step.expected_change,
            target_element=step.target_element,
            ocr_text=ocr_text,
        )
        try:
            response = await self.vision.analyze(snapshot, prompt, context)
        except ProviderError as exc:
            if not self._is_stale(generation):
                self.last_error = VerificationInconclusive.user_message
                self.logger.warning(f"Verification of {step.id} failed, will retry on next change: {exc}")
            return None

        if self._is_stale(generation):
            self.logger.info(f"Discarding verification of {step.id} from a session that was reset")
            return None

        self.last_error = None
        judgment = classify_judgment(response)
        if not judgment.completed:
            self.logger.info(f"{step.id} not completed yet: {judgment.explanation[:100]}")
            return judgment

        step.mark_verified()
        self.logger.info(f"{step.id} completed: {judgment.explanation[:100]}")

        if index == len(self.steps) - 1:
            self.current_index = len(self.steps)
            self.state = GuidanceState.COMPLETED
            self._fire_completion()
            return judgment

        self.current_index = index + 1
        self._notify()
        await self._add_guidance(self.steps[self.current_index], snapshot, context, generation)
        return judgment

    async def _add_guidance(
        self,
        step: Step,
        snapshot: Snapshot,
        context: AuxiliaryContext,
        generation: int,
    ) -> None:
        """Enrich the new current step with location hints. Failures leave the step as planned."""
        prompt = NEXT_STEP_GUIDANCE_PROMPT.format(
            instruction=step.instruction,
            ocr_text=context.ocr_text,
        )
        try:
            guidance = await self.vision.analyze(snapshot, prompt, context)
        except ProviderError as exc:
            self.logger.warning(f"Failed to fetch guidance for {step.id}: {exc}")
            return

        if self._is_stale(generation):
            return
        step.add_guidance(guidance)

    def _fire_completion(self) -> None:
        if self._completion_fired:
            return
        self._completion_fired = True
        self.finished.set()
        self.logger.info("All steps completed")
        self._notify()
        if self.on_complete is not None:
            self.on_complete()
