"""Error taxonomy for the capture, transcription and insight pipeline.

Every error carries a stable ``kind`` string. The chat orchestrator picks its
user-facing wording from the kind, and the HTTP API picks its status code from
``status_code``. Raw provider messages stay on the exception for diagnostics
and never reach the chat transcript.
"""

import re
from typing import Optional


_SECRET_PATTERNS = [
    re.compile(r"(key=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"(AIza)[0-9A-Za-z_\-]{10,}"),
    re.compile(r"(Bearer\s+)[^\s\"']+", re.IGNORECASE),
]


def redact_secrets(message: str) -> str:
    """Strip API keys and bearer tokens out of a provider message."""
    if not message:
        return ""
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(r"\1[REDACTED]", message)
    return message


class RealtyInsightsError(Exception):
    """Base class for all pipeline errors."""

    kind = "Unknown"
    status_code = 500

    def __init__(self, message: str = "", provider_message: Optional[str] = None):
        self.provider_message = redact_secrets(provider_message or "")
        super().__init__(redact_secrets(message) or self.kind)


class ConfigurationError(RealtyInsightsError):
    """Raised when a required configuration value is missing or invalid."""

    kind = "Configuration"


# Capture

class CaptureError(RealtyInsightsError):
    """Raised by AudioCapture."""


class DeviceUnavailable(CaptureError):
    """Microphone permission denied or no input device present."""

    kind = "DeviceUnavailable"
    status_code = 503


class AlreadyCapturing(CaptureError):
    """start() was called while a capture is running."""

    kind = "AlreadyCapturing"
    status_code = 409


# Assembly

class AssemblyError(RealtyInsightsError):
    """Raised by AudioAssembler."""

    status_code = 400


class EmptyInput(AssemblyError):
    """No chunks were captured."""

    kind = "EmptyInput"


class TooShort(AssemblyError):
    """Recording is below the minimum submittable size."""

    kind = "TooShort"

    def __init__(self, size_bytes: int, min_bytes: int):
        self.size_bytes = size_bytes
        self.min_bytes = min_bytes
        super().__init__(f"Recording too short: {size_bytes} bytes (minimum {min_bytes})")


# Transcription

class TranscriptionError(RealtyInsightsError):
    """Base class for transcription failures."""


class InvalidFormat(TranscriptionError):
    kind = "InvalidFormat"
    status_code = 400


class InvalidCredentials(TranscriptionError):
    """Provider rejected the API key or service account."""

    kind = "InvalidCredentials"
    status_code = 401


class UploadFailed(TranscriptionError):
    kind = "UploadFailed"
    status_code = 502


class GenerationFailed(TranscriptionError):
    kind = "GenerationFailed"
    status_code = 502


class TranscriptionUnknownError(TranscriptionError):
    kind = "Unknown"
    status_code = 500


# Insight

class InsightError(RealtyInsightsError):
    """Base class for insight provider failures."""

    status_code = 502


class RateLimited(InsightError):
    kind = "RateLimited"
    status_code = 429


class AuthFailed(InsightError):
    kind = "AuthFailed"
    status_code = 401


class ServerError(InsightError):
    kind = "ServerError"
    status_code = 502


class InsightTimeout(InsightError):
    kind = "Timeout"
    status_code = 504


class InsightCancelled(InsightError):
    kind = "Cancelled"
    status_code = 499
