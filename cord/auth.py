# auth.py
# Client for the remote sign-in / sign-up webhooks
# Responses may be JSON or plain text; failures are returned, never raised

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from . import config
from .schemas import AuthResult

ALREADY_REGISTERED = "Email already registered, please log in"
NETWORK_ERROR = "Network error - please check your connection and try again"
_ALREADY_REGISTERED_HINTS = ("email already registered", "already exists", "already in use")
SOURCE = "cord"

logger = logging.getLogger("Auth")


def looks_already_registered(text: str, *, include_duplicate: bool = False) -> bool:
    lowered = (text or "").lower()
    hints = _ALREADY_REGISTERED_HINTS + (("duplicate",) if include_duplicate else ())
    return any(h in lowered for h in hints)


def _read_body(resp: requests.Response) -> tuple[Dict[str, Any], Optional[str]]:
    """Return ``(data, raw_text)``; raw_text is set only for non-JSON content types."""
    content_type = resp.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = resp.json()
        except ValueError:
            data = {"message": resp.text}
        return (data if isinstance(data, dict) else {"message": str(data)}), None

    text = resp.text
    try:
        data = json.loads(text)
    except ValueError:
        data = {"message": text}
    if not isinstance(data, dict):
        data = {"message": text}
    return data, text


def _user_from(data: Dict[str, Any], email: str, fallback_name: str) -> Dict[str, Any]:
    return data.get("user") or {
        "id": data.get("id") or email,
        "email": data.get("email") or email,
        "name": data.get("name") or data.get("full_name") or fallback_name,
    }


class WebhookAuth:
    """Sign users in and up through two webhook URLs.

    Args:
        signin_url: Webhook receiving sign-in requests (or set CORD_SIGNIN_WEBHOOK).
        signup_url: Webhook receiving sign-up requests (or set CORD_SIGNUP_WEBHOOK).
        timeout: Seconds per request.
    """

    def __init__(
        self,
        signin_url: Optional[str] = None,
        signup_url: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.signin_url = signin_url or config.SIGNIN_WEBHOOK_URL
        self.signup_url = signup_url or config.SIGNUP_WEBHOOK_URL
        self.timeout = timeout
        self.session = session or requests.Session()

    def sign_in(self, email: str, password: str) -> AuthResult:
        payload = {
            "email": email,
            "password": password,
            "action": "signin",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": SOURCE,
        }
        try:
            resp = self.session.post(self.signin_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"Sign in webhook error: {exc}")
            return AuthResult(success=False, error=NETWORK_ERROR)

        logger.info(f"Sign in webhook response status: {resp.status_code}")
        if not resp.ok:
            return AuthResult(
                success=False,
                error=f"Authentication failed ({resp.status_code}). Please check your credentials.",
            )

        data, _ = _read_body(resp)
        if data.get("success") is False or data.get("error"):
            return AuthResult(
                success=False,
                error=data.get("error") or data.get("message") or "Authentication failed",
            )

        return AuthResult(
            success=True,
            user=_user_from(data, email, email.split("@")[0]),
            token=data.get("token"),
            message=data.get("message") or "Signed in successfully!",
        )

    def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        payload = {"email": email, "full_name": name, "password": password}
        try:
            resp = self.session.post(self.signup_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"Sign up webhook error: {exc}")
            return AuthResult(success=False, error=NETWORK_ERROR)

        logger.info(f"Sign up webhook response status: {resp.status_code}")
        data, raw_text = _read_body(resp)

        if raw_text is not None and looks_already_registered(raw_text):
            return AuthResult(success=False, error=ALREADY_REGISTERED)

        if not resp.ok:
            if resp.status_code in (400, 409):
                return AuthResult(success=False, error=ALREADY_REGISTERED)
            return AuthResult(
                success=False,
                error=f"Failed to create account ({resp.status_code}). Please try again.",
            )

        if data.get("success") is False or data.get("error"):
            message = str(data.get("error") or data.get("message") or "Failed to create account")
            if looks_already_registered(message, include_duplicate=True):
                return AuthResult(success=False, error=ALREADY_REGISTERED)
            return AuthResult(success=False, error=message)

        return AuthResult(
            success=True,
            user=_user_from(data, email, name),
            token=data.get("token"),
            message=data.get("message") or "Account created successfully!",
        )
