# Centralizes communication with the vision-language provider
# Every chat-completion request goes through invoke() so errors are translated in one place

import json
import os
import logging
from datetime import datetime, timezone, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from . import config
from .data import redact_messages, save_to_file
from .errors import (
    ProviderAuthRejected,
    ProviderEmptyResponse,
    ProviderError,
    ProviderMalformedRequest,
    ProviderNetworkFailure,
    ProviderRateLimited,
)

UTCm0 = timezone(timedelta(hours=0))


def _get_logger() -> logging.Logger:
    logger = logging.getLogger("Invoke")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(asctime)s - [CORD-INVOKE] - %(message)s"))
        logger.addHandler(h)
        logger.propagate = False
    return logger


def make_client(
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    timeout: float = config.REQUEST_TIMEOUT_SEC,
) -> AsyncOpenAI:
    """Build the provider client. Retries are disabled: retrying is the caller's decision."""
    return AsyncOpenAI(
        base_url=api_base or config.API_BASE,
        api_key=api_key or os.getenv("OPENAI_API_KEY") or "no-key",
        timeout=timeout,
        max_retries=0,
    )


def translate_error(exc: Exception) -> ProviderError:
    """Map an ``openai`` SDK exception onto the provider error taxonomy."""
    if isinstance(exc, openai.RateLimitError):
        return ProviderRateLimited(str(exc))
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderAuthRejected(str(exc))
    if isinstance(exc, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return ProviderMalformedRequest(str(exc))
    if isinstance(exc, openai.APIConnectionError):  # includes APITimeoutError
        return ProviderNetworkFailure(str(exc))
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code == 413:
            return ProviderMalformedRequest(str(exc))
        return ProviderNetworkFailure(f"provider returned {exc.status_code}: {exc}")
    return ProviderError(str(exc))


async def invoke(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, Any]],
    debug_tag: str = "",
    temperature: float = 0.1,
    max_tokens: Optional[int] = None,
    traffic_dir: Optional[Path] = None,
    **kwargs,  # generalized variable to accept any further args
) -> str:
    """Send one chat-completion request and return the text of the first choice.

    Raises:
        ProviderError: one of its subclasses, never a raw SDK exception.
    """
    logger = _get_logger()
    traffic_dir = traffic_dir if traffic_dir is not None else config.TRAFFIC_LOG_DIR

    now = datetime.now(UTCm0)
    request_fts = now.strftime("%Y%m%d_%H%M%S")
    subfolder_path = Path(f"{request_fts}-{debug_tag}")

    save_to_file(
        text=json.dumps(redact_messages(messages), indent=2),
        subfolder=subfolder_path,
        filename=f"{request_fts}-{debug_tag}-SND.txt",
        base=traffic_dir,
    )
    logger.debug(f"{debug_tag} request sent to {model}")

    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            **kwargs,
        )
    except openai.OpenAIError as exc:
        err = translate_error(exc)
        logger.warning(f"{debug_tag} request failed: {type(err).__name__}: {exc}")
        raise err from exc

    content = None
    if response.choices:
        content = response.choices[0].message.content

    response_fts = datetime.now(UTCm0).strftime("%Y%m%d_%H%M%S")
    fp = save_to_file(
        text=str(content),
        subfolder=subfolder_path,
        filename=f"{response_fts}-{debug_tag}-RCV.txt",
        base=traffic_dir,
    )
    logger.debug(f"{debug_tag} response received, stored at {fp}")

    if not content or not content.strip():
        raise ProviderEmptyResponse(f"{debug_tag} returned no content")

    return content
