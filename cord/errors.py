# errors.py
# Exception taxonomy shared by capture, provider calls, planning and verification

from __future__ import annotations


class CordError(Exception):
    """Base class for every error raised by cord."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.user_message)


# =============================================================================
# CAPTURE
# =============================================================================

class CaptureError(CordError):
    user_message = "Screen capture failed."


class PermissionDenied(CaptureError):
    user_message = (
        "Failed to start screen capture. Please ensure you have the necessary permissions."
    )


class CaptureUnsupported(CaptureError):
    user_message = "Screen capture is not supported on this system."


class CaptureBusy(CaptureError):
    user_message = "A screen capture session is already running. Stop it before starting a new one."


class FrameNotReady(CaptureError):
    user_message = "No frame is available yet. Please wait a moment."


class CaptureEnded(CaptureError):
    user_message = "Screen sharing ended."


# =============================================================================
# VISION PROVIDER
# =============================================================================

class ProviderError(CordError):
    user_message = "Failed to analyze screen. Please check your connection and try again."


class ProviderRateLimited(ProviderError):
    user_message = "API rate limit exceeded. Please wait a moment and try again."


class ProviderAuthRejected(ProviderError):
    user_message = "API access denied. Please check your API key."


class ProviderMalformedRequest(ProviderError):
    user_message = "Invalid request to the vision API. The image may be too large or in an unsupported format."


class ProviderEmptyResponse(ProviderError):
    user_message = "No content received from the vision API - the response may have been filtered."


class ProviderNetworkFailure(ProviderError):
    user_message = "Network error - please check your connection and try again."


# =============================================================================
# GUIDANCE
# =============================================================================

class PlanningFailed(CordError):
    user_message = "Failed to initialize steps."


class VerificationInconclusive(CordError):
    user_message = "Could not check the current step. It will be checked again on the next change."
