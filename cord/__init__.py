"""
cord - step-by-step screen guidance.

Captures the screen, asks a vision-language model to break a goal into steps,
and verifies each step against fresh screenshots until the goal is reached.
"""

from .errors import (
    CordError,
    CaptureError,
    PermissionDenied,
    PlanningFailed,
    ProviderError,
    VerificationInconclusive,
)
from .schemas import Snapshot, Step, Judgment, GuidanceProgress
from .vision import VisionClient
from .planner import StepPlanner
from .verifier import StepVerifier, GuidanceState
from .guide import Guide

__all__ = [
    "CordError",
    "CaptureError",
    "PermissionDenied",
    "PlanningFailed",
    "ProviderError",
    "VerificationInconclusive",
    "Snapshot",
    "Step",
    "Judgment",
    "GuidanceProgress",
    "VisionClient",
    "StepPlanner",
    "StepVerifier",
    "GuidanceState",
    "Guide",
]
