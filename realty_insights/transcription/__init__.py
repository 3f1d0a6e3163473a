"""Transcription module for realty-insights."""

from .base import AbstractTranscriptionProvider, ProviderAuthError, UploadHandle
from ..models.transcription import TranscriptionRequest, TranscriptionResult
from .client import DEFAULT_INSTRUCTION, TranscriptionClient
from .gemini_backend import GeminiTranscriptionProvider
from .google_backend import GoogleSpeechProvider

__all__ = [
    "AbstractTranscriptionProvider",
    "ProviderAuthError",
    "UploadHandle",
    "TranscriptionRequest",
    "TranscriptionResult",
    "DEFAULT_INSTRUCTION",
    "TranscriptionClient",
    "GeminiTranscriptionProvider",
    "GoogleSpeechProvider",
]
