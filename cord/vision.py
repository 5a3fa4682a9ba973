"""Vision analysis client.

Stateless request/response wrapper around a vision-capable chat model. Three
calls are offered: free-form screen analysis, OCR-style text extraction and
text-only chat continuation. Nothing is remembered between calls; callers pass
in whatever history or context they want the model to see.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Optional

from openai import AsyncOpenAI

from . import config
from .detector import detection_summary
from .errors import ProviderError
from .invoke import invoke, make_client
from .prompts.guidance import (
    ANALYSIS_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    DEFAULT_QUERY,
    OCR_SYSTEM_PROMPT,
    OCR_USER_PROMPT,
)
from .schemas import AuxiliaryContext, ChatTurn, Snapshot

###############################################################################
# Constants                                                                   #
###############################################################################

ANALYSIS_MAX_TOKENS = 2048
ANALYSIS_TEMPERATURE = 0.4
OCR_MAX_TOKENS = 1024
OCR_TEMPERATURE = 0.1
CHAT_MAX_TOKENS = 1024
CHAT_TEMPERATURE = 0.7
IMAGE_DETAIL = "high"


###############################################################################
# Prompt composition                                                          #
###############################################################################


def truncate_ocr(text: str, limit: int = config.OCR_PROMPT_CHARS) -> str:
    """Bound the OCR text embedded in a prompt to keep payloads small."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def compose_system_prompt(query: str, context: Optional[AuxiliaryContext] = None) -> str:
    """Build the analysis system prompt from the user's goal and auxiliary context."""
    context = context or AuxiliaryContext()

    ocr = truncate_ocr(context.ocr_text)
    ocr_context = f'OCR Text Detected: "{ocr}"' if ocr else "No OCR data available"

    if context.ui_elements is not None:
        ui_context = f"UI Elements: {len(context.ui_elements)} interactive elements detected"
        if context.ui_elements:
            ui_context += f" ({detection_summary(context.ui_elements)})"
    else:
        ui_context = "No UI elements data"

    mouse_context = ""
    mouse = context.mouse
    if mouse is not None and mouse.current_position is not None:
        pos = mouse.current_position
        mouse_context = (
            f"Mouse: pointer at ({pos.x:.0f}, {pos.y:.0f}), "
            f"{len(mouse.recent_clicks)} recent click(s)"
        )

    return ANALYSIS_SYSTEM_PROMPT.format(
        goal=query or "Analyze what I can do on this screen",
        ocr_context=ocr_context,
        ui_context=ui_context,
        mouse_context=mouse_context,
    ).rstrip()


def _image_turn(text: str, snapshot: Snapshot) -> dict:
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": text},
            {
                "type": "image_url",
                "image_url": {"url": snapshot.data, "detail": IMAGE_DETAIL},
            },
        ],
    }


###############################################################################
# Chat history                                                                #
###############################################################################


class ChatHistory:
    """Fixed-capacity window over the most recent chat turns."""

    def __init__(self, maxlen: int = config.CHAT_HISTORY_TURNS) -> None:
        self._turns: deque[ChatTurn] = deque(maxlen=max(0, maxlen))

    def add(self, role: str, content: str) -> None:
        self._turns.append(ChatTurn(role=role, content=content))

    def clear(self) -> None:
        self._turns.clear()

    def __iter__(self):
        return iter(self._turns)

    def __len__(self) -> int:
        return len(self._turns)


###############################################################################
# Client                                                                      #
###############################################################################


class VisionClient:
    """Send screenshots and prompts to a vision-language model.

    Args:
        model_name: Chat model with image input support.
        client: Pre-built ``AsyncOpenAI`` client (one is created when omitted).
        api_key: Provider key (or set OPENAI_API_KEY env var).
        api_base: Provider base URL (or set CORD_API_BASE env var).
        history_turns: Number of recent chat turns forwarded by ``continue_chat``.
    """

    def __init__(
        self,
        model_name: str = config.DEFAULT_MODEL,
        client: Optional[AsyncOpenAI] = None,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        history_turns: int = config.CHAT_HISTORY_TURNS,
    ) -> None:
        self.model_name = model_name
        self.client = client or make_client(api_key=api_key, api_base=api_base)
        self.history_turns = history_turns
        self.logger = logging.getLogger("Vision")

    async def analyze(
        self,
        snapshot: Snapshot,
        prompt: str,
        context: Optional[AuxiliaryContext] = None,
    ) -> str:
        """Analyze a screenshot for ``prompt`` and return the model's text verbatim.

        Raises:
            ProviderError: rate limit, auth, malformed request, empty response or network failure.
        """
        messages = [
            {"role": "system", "content": compose_system_prompt(prompt, context)},
            _image_turn(prompt or DEFAULT_QUERY, snapshot),
        ]
        self.logger.info(f"Analyzing screenshot ({snapshot.width}x{snapshot.height})")
        return await invoke(
            client=self.client,
            model=self.model_name,
            messages=messages,
            debug_tag="[Analyze]",
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )

    async def extract_text(self, snapshot: Snapshot) -> str:
        """Transcribe visible text. Best-effort: any provider failure yields ``""``."""
        messages = [
            {"role": "system", "content": OCR_SYSTEM_PROMPT},
            _image_turn(OCR_USER_PROMPT, snapshot),
        ]
        try:
            return await invoke(
                client=self.client,
                model=self.model_name,
                messages=messages,
                debug_tag="[OCR]",
                temperature=OCR_TEMPERATURE,
                max_tokens=OCR_MAX_TOKENS,
            )
        except ProviderError as exc:
            self.logger.warning(f"OCR extraction failed, continuing without text: {exc}")
            return ""

    async def continue_chat(self, history: Iterable[ChatTurn], new_message: str) -> str:
        """Text-only continuation over the last ``history_turns`` turns of ``history``."""
        recent = deque(history, maxlen=max(0, self.history_turns))

        messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        messages += [{"role": turn.role, "content": turn.content} for turn in recent]
        messages.append({"role": "user", "content": new_message})

        return await invoke(
            client=self.client,
            model=self.model_name,
            messages=messages,
            debug_tag="[Chat]",
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )

    async def test_connection(self) -> bool:
        try:
            await invoke(
                client=self.client,
                model=self.model_name,
                messages=[{"role": "user", "content": "Hello, can you see this message?"}],
                debug_tag="[Ping]",
                max_tokens=50,
            )
        except ProviderError as exc:
            self.logger.warning(f"Connection test failed: {exc}")
            return False
        return True
