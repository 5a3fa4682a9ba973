# parsing.py
# Defensive parsing of free-text model output: step plans and verification judgments

from __future__ import annotations

import json
import re
from typing import List, Literal

from pydantic import BaseModel, Field, ValidationError

from .schemas import Judgment, PlannedStep, Step

FALLBACK_MAX_STEPS = 5
FALLBACK_EXPECTED_CHANGE = "Screen should update to reflect the action"
DEFAULT_EXPECTED_CHANGE = "Screen should update"
DEFAULT_INSTRUCTION = "Complete this step"

COMPLETED_MARKER = "completed:"
NOT_COMPLETED_MARKER = "not_completed"

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_LIST_NUMBERING = re.compile(r"^\d+\.?\s*")

ParseKind = Literal["structured", "fallback", "unparseable"]


class PlanParse(BaseModel):
    """Tagged result of reading a plan: schema-compliant, recovered line by line, or nothing usable."""
    kind: ParseKind
    steps: List[PlannedStep] = Field(default_factory=list)

    @property
    def usable(self) -> bool:
        return self.kind != "unparseable" and bool(self.steps)


def _parse_structured(text: str) -> List[PlannedStep]:
    """Decode the first ``[...]`` span as a list of step objects.

    Raises:
        ValueError: no array, invalid JSON, empty list or entries of the wrong shape.
    """
    match = _JSON_ARRAY.search(text)
    if not match:
        raise ValueError("No JSON array found in response")

    items = json.loads(match.group(0))
    if not isinstance(items, list) or not items:
        raise ValueError("Plan is not a non-empty JSON array")

    steps = []
    for item in items:
        if isinstance(item, str):
            item = {"instruction": item}
        if not isinstance(item, dict):
            raise ValueError(f"Unexpected plan entry: {item!r}")
        steps.append(PlannedStep.model_validate(item))
    return steps


def _parse_lines(text: str, limit: int = FALLBACK_MAX_STEPS) -> List[PlannedStep]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return [
        PlannedStep(
            description=f"Step {idx + 1}",
            instruction=_LIST_NUMBERING.sub("", line).strip(),
            target_element="",
            expected_change=FALLBACK_EXPECTED_CHANGE,
        )
        for idx, line in enumerate(lines[:limit])
    ]


def parse_plan(text: str) -> PlanParse:
    """Read the model's plan, preferring the JSON array and degrading to one step per line."""
    if not text or not text.strip():
        return PlanParse(kind="unparseable")

    try:
        return PlanParse(kind="structured", steps=_parse_structured(text))
    except (ValueError, ValidationError):
        # json.JSONDecodeError is a ValueError
        pass

    steps = _parse_lines(text)
    if not steps:
        return PlanParse(kind="unparseable")
    return PlanParse(kind="fallback", steps=steps)


def build_steps(planned: List[PlannedStep]) -> List[Step]:
    """Assign ordinal ids and fill in defaults for missing fields."""
    return [
        Step(
            id=f"step-{idx}",
            description=p.description or f"Step {idx + 1}",
            instruction=p.instruction or p.description or DEFAULT_INSTRUCTION,
            target_element=p.target_element or "",
            expected_change=p.expected_change or DEFAULT_EXPECTED_CHANGE,
        )
        for idx, p in enumerate(planned)
    ]


def classify_judgment(text: str) -> Judgment:
    """Judge a verification answer: complete only with COMPLETED: and no NOT_COMPLETED anywhere."""
    raw = text or ""
    lowered = raw.lower()
    completed = COMPLETED_MARKER in lowered and NOT_COMPLETED_MARKER not in lowered

    explanation = raw.strip()
    marker = NOT_COMPLETED_MARKER if NOT_COMPLETED_MARKER in lowered else COMPLETED_MARKER
    pos = lowered.find(marker)
    if pos != -1:
        explanation = raw[pos + len(marker):].lstrip(":").strip()

    return Judgment(completed=completed, explanation=explanation, raw=raw)
