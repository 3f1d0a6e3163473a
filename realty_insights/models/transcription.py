"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import InvalidFormat, RealtyInsightsError
from .audio import AudioRecording
from .formats import (
    EXTENSION_MIME_MAP,
    SUPPORTED_MIME_TYPES,
    extension_for,
    file_extension,
    is_supported_format,
    resolve_mime_type,
)
from ..storage.transient import unique_filename


class TranscriptionRequest(BaseModel):
    """One validated submission to a transcription provider.

    Built through :meth:`from_recording`, which resolves the MIME type and
    generates the transient filename. Construction fails with
    :class:`InvalidFormat` when no supported type can be resolved.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    recording: AudioRecording
    filename: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    mime_type: str

    @field_validator("mime_type")
    @classmethod
    def _check_supported(cls, value: str) -> str:
        if value not in SUPPORTED_MIME_TYPES:
            raise ValueError(f"unsupported MIME type: {value}")
        return value

    @classmethod
    def from_recording(cls, recording: AudioRecording,
                       source_filename: Optional[str] = None) -> "TranscriptionRequest":
        if not is_supported_format(recording.mime_type, source_filename):
            raise InvalidFormat(
                f"Invalid audio file type '{recording.mime_type or 'unknown'}'"
                f" ({source_filename or 'no filename'})"
            )

        mime_type = resolve_mime_type(recording.mime_type, source_filename)
        extension = file_extension(source_filename)
        if extension not in EXTENSION_MIME_MAP:
            extension = extension_for(mime_type)
        filename = unique_filename("transcribe", extension)
        return cls(
            recording=recording,
            filename=filename,
            display_name=source_filename or filename,
            mime_type=mime_type,
        )


@dataclass
class TranscriptionResult:
    """Result of a transcription operation: a transcript or a typed error."""
    text: str = ""
    error: Optional[RealtyInsightsError] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: int = 0
    processing_time: float = 0.0
    provider: Optional[str] = None
    processed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.error is None
