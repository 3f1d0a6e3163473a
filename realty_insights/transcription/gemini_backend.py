"""Gemini Files API transcription provider."""

import logging
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .base import AbstractTranscriptionProvider, ProviderAuthError, UploadHandle

logger = logging.getLogger(__name__)


def _is_auth_error(error: genai_errors.APIError) -> bool:
    if error.code in (401, 403):
        return True
    return "API key not valid" in (error.message or str(error))


class GeminiTranscriptionProvider(AbstractTranscriptionProvider):
    """Uploads audio to the Gemini Files API and asks a model for a transcript."""

    service_name = "Gemini"

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: str = "gemini-2.5-flash",
                 client: Optional[genai.Client] = None):
        """Initialize Gemini transcription provider.

        Args:
            api_key: Gemini API key; ignored when client is given
            model: Model used to generate the transcript
            client: Pre-built genai client
        """
        self.api_key = api_key
        self.model = model
        self._client = client
        logger.info(f"GeminiTranscriptionProvider initialized with model: {model}")

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ProviderAuthError("Gemini API key not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    async def upload(self, path: Path, mime_type: str, display_name: str) -> UploadHandle:
        logger.info(f"Uploading to Gemini API: {display_name} ({mime_type})")
        try:
            uploaded = await self.client.aio.files.upload(
                file=str(path),
                config=types.UploadFileConfig(mime_type=mime_type, display_name=display_name),
            )
        except genai_errors.APIError as e:
            if _is_auth_error(e):
                raise ProviderAuthError(e.message or str(e)) from e
            raise

        if not uploaded.uri:
            raise RuntimeError(f"Gemini upload returned no URI for {display_name}")

        logger.info(f"File uploaded to Gemini: {uploaded.uri}")
        return UploadHandle(uri=uploaded.uri, mime_type=uploaded.mime_type or mime_type, name=uploaded.name)

    async def generate_transcript(self, handle: UploadHandle, mime_type: str, instruction: str) -> str:
        logger.info(f"Generating transcription for {handle.uri}")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_uri(file_uri=handle.uri, mime_type=mime_type),
                    instruction,
                ],
            )
        except genai_errors.APIError as e:
            if _is_auth_error(e):
                raise ProviderAuthError(e.message or str(e)) from e
            raise

        return response.text or ""

    async def release(self, handle: UploadHandle) -> None:
        if not handle.name:
            return
        await self.client.aio.files.delete(name=handle.name)
        logger.debug(f"Deleted Gemini file {handle.name}")
