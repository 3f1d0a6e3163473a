"""Transcription client: validate, write transient file, upload, transcribe, clean up."""

import logging
import time
from pathlib import Path
from typing import List, Optional

from ..exceptions import (
    GenerationFailed,
    InvalidCredentials,
    InvalidFormat,
    RealtyInsightsError,
    TooShort,
    TranscriptionError,
    TranscriptionUnknownError,
    UploadFailed,
)
from ..models.audio import AudioRecording
from ..models.formats import SUPPORTED_FORMATS, AudioFormat
from ..models.transcription import TranscriptionRequest, TranscriptionResult
from ..storage.transient import TransientStorage
from .base import AbstractTranscriptionProvider, ProviderAuthError, UploadHandle

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTION = (
    "Generate a transcript of the speech. "
    "Please provide a clean, accurate transcription of the audio content."
)


class TranscriptionClient:
    """Turns one AudioRecording into text through a transcription provider.

    Every call owns its own transient file, named uniquely, and deletes it
    before returning whether the provider succeeded, failed or raised.
    Failures come back as a TranscriptionResult carrying a typed error.
    """

    def __init__(self,
                 provider: AbstractTranscriptionProvider,
                 storage: TransientStorage,
                 instruction: str = DEFAULT_INSTRUCTION,
                 min_recording_bytes: int = 0):
        self.provider = provider
        self.storage = storage
        self.instruction = instruction
        self.min_recording_bytes = min_recording_bytes

    async def transcribe(self, recording: AudioRecording, filename: Optional[str] = None) -> TranscriptionResult:
        """Transcribe a recording.

        Args:
            recording: Assembled audio
            filename: Client-side filename, used for display and for the
                extension half of format validation

        Returns:
            TranscriptionResult with text, or with a TranscriptionError
        """
        start_time = time.monotonic()

        if recording.too_short or recording.size_bytes < self.min_recording_bytes:
            logger.info(f"Refusing to transcribe {recording.size_bytes}-byte recording")
            return self._failure(TooShort(recording.size_bytes, self.min_recording_bytes),
                                 recording, None, start_time)

        try:
            request = TranscriptionRequest.from_recording(recording, filename)
        except InvalidFormat as e:
            logger.warning(f"Rejected audio format: {e}")
            return self._failure(e, recording, None, start_time)

        path: Optional[Path] = None
        try:
            path = self.storage.write(recording.container_bytes(), request.filename)
            logger.info(f"Audio file saved to temp: {path}")

            text = await self._run_provider(path, request)
            logger.info(f"Transcription completed successfully ({len(text)} chars)")
            return TranscriptionResult(
                text=text,
                filename=request.filename,
                mime_type=request.mime_type,
                size_bytes=recording.size_bytes,
                processing_time=time.monotonic() - start_time,
                provider=self.provider.service_name,
            )
        except TranscriptionError as e:
            logger.error(f"Transcription failed ({e.kind}): {e.provider_message or e}")
            return self._failure(e, recording, request, start_time)
        except Exception as e:
            logger.error(f"Unexpected error in transcription process: {e}", exc_info=True)
            return self._failure(
                TranscriptionUnknownError("Failed to transcribe audio", provider_message=str(e)),
                recording, request, start_time,
            )
        finally:
            if path is not None:
                self._cleanup(path)

    async def _run_provider(self, path: Path, request: TranscriptionRequest) -> str:
        try:
            handle = await self.provider.upload(path, request.mime_type, request.display_name)
        except ProviderAuthError as e:
            raise InvalidCredentials("Transcription provider rejected the API key",
                                     provider_message=str(e)) from e
        except Exception as e:
            raise UploadFailed("Failed to upload audio file to the transcription provider",
                               provider_message=str(e)) from e

        try:
            text = await self.provider.generate_transcript(handle, request.mime_type, self.instruction)
        except ProviderAuthError as e:
            raise InvalidCredentials("Transcription provider rejected the API key",
                                     provider_message=str(e)) from e
        except Exception as e:
            raise GenerationFailed("Failed to generate transcription",
                                   provider_message=str(e)) from e
        finally:
            await self._release(handle)

        return (text or "").strip()

    async def _release(self, handle: UploadHandle) -> None:
        try:
            await self.provider.release(handle)
        except Exception as e:
            logger.warning(f"Failed to delete provider artifact {handle.uri}: {e}")

    def _cleanup(self, path: Path) -> None:
        try:
            self.storage.delete(path)
            logger.info(f"Temporary file cleaned up: {path}")
        except Exception as e:
            logger.warning(f"Failed to cleanup temporary file {path}: {e}")

    def _failure(self, error: RealtyInsightsError, recording: AudioRecording,
                 request: Optional[TranscriptionRequest], start_time: float) -> TranscriptionResult:
        return TranscriptionResult(
            error=error,
            filename=request.filename if request else None,
            mime_type=request.mime_type if request else recording.mime_type,
            size_bytes=recording.size_bytes,
            processing_time=time.monotonic() - start_time,
            provider=self.provider.service_name,
        )

    def is_available(self) -> bool:
        return self.provider.is_available()

    @staticmethod
    def supported_formats() -> List[AudioFormat]:
        return list(SUPPORTED_FORMATS)
