# schemas.py

from __future__ import annotations

import base64
import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# SCREEN DATA
# =============================================================================

JPEG_DATA_URL_PREFIX = "data:image/jpeg;base64,"


class Snapshot(BaseModel):
    """
    A single rasterized, encoded capture of the shared screen.
    Held in memory only; two snapshots are "the same screen" when their data is equal.
    """
    data: str = Field(..., description="JPEG image as a base64 data URL")
    width: int = Field(0, ge=0)
    height: int = Field(0, ge=0)
    captured_at: float = Field(default_factory=time.time, description="Unix timestamp of the capture")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_jpeg(cls, jpeg: bytes, width: int, height: int) -> "Snapshot":
        return cls(
            data=JPEG_DATA_URL_PREFIX + base64.b64encode(jpeg).decode(),
            width=width,
            height=height,
        )

    def jpeg_bytes(self) -> bytes:
        """Decode the data URL back to raw JPEG bytes (for multipart uploads)."""
        _, _, payload = self.data.partition(",")
        return base64.b64decode(payload)

    def same_screen(self, other: Optional["Snapshot"]) -> bool:
        return other is not None and other.data == self.data


# =============================================================================
# STEP PLANNING SCHEMAS
# =============================================================================

class PlannedStep(BaseModel):
    """
    One entry of the plan as returned by the model.
    Lenient on purpose: any field may be missing, camelCase keys are accepted.
    """
    description: Optional[str] = Field(None, description="Brief description of what this step accomplishes")
    instruction: Optional[str] = Field(None, description="Detailed instruction for the user")
    target_element: Optional[str] = Field(
        None,
        alias="targetElement",
        description="Specific element to interact with (if applicable)",
    )
    expected_change: Optional[str] = Field(
        None,
        alias="expectedChange",
        description="What should change on screen after this step",
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Step(BaseModel):
    """One unit of user-facing instruction within a planned sequence."""
    id: str = Field(..., description="Ordinal-derived identifier, unique within a session")
    description: str
    instruction: str
    target_element: str = ""
    expected_change: str = ""
    completed: bool = False
    verified: bool = False

    def mark_verified(self) -> None:
        # completion is monotonic: never flips back to False
        self.completed = True
        self.verified = True

    def add_guidance(self, guidance: str) -> None:
        self.instruction = f"{self.instruction}\n\nDetailed Guidance: {guidance.strip()}"


class Judgment(BaseModel):
    """Model's verdict on whether the current step's expected change is visible."""
    completed: bool
    explanation: str = ""
    raw: str = ""


# =============================================================================
# AUXILIARY SIGNALS
# =============================================================================

class Detection(BaseModel):
    """A UI element found by the object-detection model (center-based box)."""
    cls: str = Field(..., alias="class", description="Detected element class")
    x: float
    y: float
    width: float
    height: float
    confidence: float = Field(..., ge=0.0, le=1.0)
    class_id: Optional[int] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @property
    def bounding_box(self) -> tuple[float, float, float, float]:
        """Return ``(left, top, right, bottom)`` in image pixels."""
        half_w, half_h = self.width / 2, self.height / 2
        return self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h


class MousePosition(BaseModel):
    x: float
    y: float
    timestamp: float


ClickButton = Literal["left", "right", "middle"]


class ClickEvent(BaseModel):
    x: float
    y: float
    timestamp: float
    button: ClickButton = "left"


class MouseContext(BaseModel):
    current_position: Optional[MousePosition] = None
    recent_path: List[MousePosition] = Field(default_factory=list)
    recent_clicks: List[ClickEvent] = Field(default_factory=list)
    is_active: bool = False


class AuxiliaryContext(BaseModel):
    """Supplementary context merged into analysis prompts."""
    ocr_text: str = ""
    ui_elements: Optional[List[Detection]] = Field(
        None,
        description="None when no detector ran; an empty list when it ran and found nothing",
    )
    mouse: Optional[MouseContext] = None


# =============================================================================
# CONVERSATION / PRESENTATION
# =============================================================================

class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class GuidanceProgress(BaseModel):
    """Read-only view of a guidance session for rendering."""
    goal: str = ""
    state: str
    current_index: int = 0
    completed: int = 0
    total: int = 0
    paused: bool = False
    error: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)

    @property
    def current_step(self) -> Optional[Step]:
        if 0 <= self.current_index < len(self.steps):
            return self.steps[self.current_index]
        return None


class AuthResult(BaseModel):
    success: bool
    user: Optional[Dict[str, Any]] = None
    token: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
