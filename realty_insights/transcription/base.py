"""Abstract base classes for transcription providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class UploadHandle:
    """Reference to an artifact uploaded to a provider."""
    uri: str
    mime_type: str
    name: Optional[str] = None
    payload: Any = field(default=None, repr=False)  # Provider-private data


class ProviderAuthError(Exception):
    """Provider rejected the credentials. Raised by provider adapters."""


class AbstractTranscriptionProvider(ABC):
    """Upload-then-generate transcription backend."""

    service_name = "unknown"

    @abstractmethod
    async def upload(self, path: Path, mime_type: str, display_name: str) -> UploadHandle:
        """Upload a local audio file.

        Raises:
            ProviderAuthError: If the provider rejects the credentials
            Exception: Any other upload failure
        """
        pass

    @abstractmethod
    async def generate_transcript(self, handle: UploadHandle, mime_type: str, instruction: str) -> str:
        """Produce a transcript for an uploaded artifact.

        Raises:
            ProviderAuthError: If the provider rejects the credentials
            Exception: Any other generation failure
        """
        pass

    async def release(self, handle: UploadHandle) -> None:
        """Delete the provider-side artifact, if the provider keeps one."""
        return None

    def is_available(self) -> bool:
        """True when the provider has the credentials it needs."""
        return True
