"""Google Speech-to-Text transcription provider."""

import io
import logging
import wave
from pathlib import Path
from typing import Optional

from google.api_core import exceptions as gax_exceptions
from google.cloud import speech
from google.oauth2 import service_account

from .base import AbstractTranscriptionProvider, ProviderAuthError, UploadHandle

logger = logging.getLogger(__name__)

_ENCODINGS = {
    "audio/wav": speech.RecognitionConfig.AudioEncoding.LINEAR16,
    "audio/ogg": speech.RecognitionConfig.AudioEncoding.OGG_OPUS,
    "audio/webm": speech.RecognitionConfig.AudioEncoding.WEBM_OPUS,
}


class GoogleSpeechProvider(AbstractTranscriptionProvider):
    """Google Speech-to-Text backend.

    Speech-to-Text has no separate upload step for short audio, so ``upload``
    only reads the transient file into memory and ``generate_transcript``
    runs a synchronous recognize request. The instruction text is not used.
    """

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 enable_automatic_punctuation: bool = True,
                 request_timeout: float = 30.0,
                 client: Optional[speech.SpeechAsyncClient] = None):
        """Initialize Google Speech provider.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US', 'es-ES')
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: Per-request deadline in seconds
            client: Pre-built async client (credentials_path is then ignored)
        """
        self.credentials_path = credentials_path
        self.language = language
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self._client = client

    @property
    def client(self) -> speech.SpeechAsyncClient:
        if self._client is None:
            if not self.credentials_path:
                raise ProviderAuthError("Google credentials path not configured")
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            try:
                credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            except (OSError, ValueError) as e:
                raise ProviderAuthError(f"Invalid Google credentials: {e}") from e
            self._client = speech.SpeechAsyncClient(credentials=credentials)
            logger.info(f"Using Google Cloud project: {credentials.project_id}")
        return self._client

    def is_available(self) -> bool:
        return self._client is not None or bool(self.credentials_path and Path(self.credentials_path).exists())

    async def upload(self, path: Path, mime_type: str, display_name: str) -> UploadHandle:
        if mime_type not in _ENCODINGS:
            raise ValueError(f"{self.service_name} cannot decode {mime_type}")
        content = Path(path).read_bytes()
        logger.debug(f"Loaded {display_name} for recognition ({len(content)} bytes)")
        return UploadHandle(uri=f"local://{display_name}", mime_type=mime_type, name=None, payload=content)

    async def generate_transcript(self, handle: UploadHandle, mime_type: str, instruction: str) -> str:
        config = speech.RecognitionConfig(
            encoding=_ENCODINGS[mime_type],
            language_code=self.language,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )
        sample_rate = self._wav_sample_rate(handle.payload) if mime_type == "audio/wav" else None
        if sample_rate:
            config.sample_rate_hertz = sample_rate

        audio = speech.RecognitionAudio(content=handle.payload)
        try:
            response = await self.client.recognize(config=config, audio=audio, timeout=self.request_timeout)
        except (gax_exceptions.Unauthenticated, gax_exceptions.PermissionDenied) as e:
            logger.error(f"Google STT rejected credentials for {handle.uri}")
            raise ProviderAuthError(str(e)) from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error for {handle.uri}: {e}")
            raise RuntimeError(f"Google Speech API error: {e}") from e

        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            return ""

        transcripts = [result.alternatives[0].transcript
                       for result in response.results if result.alternatives]
        return " ".join(t.strip() for t in transcripts if t)

    @staticmethod
    def _wav_sample_rate(content: bytes) -> Optional[int]:
        try:
            with wave.open(io.BytesIO(content), 'rb') as wf:
                return wf.getframerate()
        except (wave.Error, EOFError):
            return None
