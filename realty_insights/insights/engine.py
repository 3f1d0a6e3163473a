"""Gemini REST engine for analytics insights."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every insight request."""
    temperature: float = 0.3
    max_output_tokens: int = 1500
    top_p: float = 0.8
    top_k: int = 40

    def to_payload(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "maxOutputTokens": self.max_output_tokens,
            "topP": self.top_p,
            "topK": self.top_k,
        }


class InsightHTTPError(Exception):
    """Non-200 response from the insight provider."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API Error: {status} - {message}")


class InsightEngine(Protocol):
    """Protocol for engines that answer a prompt with a raw provider response."""

    async def generate(self, prompt: str, generation_config: GenerationConfig) -> Dict[str, Any]:
        ...

    def is_available(self) -> bool:
        ...


class GeminiInsightEngine:
    """Sends generateContent requests to the Gemini REST API."""

    def __init__(self,
                 api_key: Optional[str],
                 model: str = "gemini-2.5-flash",
                 base_url: str = DEFAULT_BASE_URL,
                 session: Optional[aiohttp.ClientSession] = None):
        """Initialize Gemini insight engine.

        Args:
            api_key: Gemini API key
            model: Gemini model to use
            base_url: API base URL
            session: Shared aiohttp session; one is created per request otherwise
        """
        self.api_key = api_key or ""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._session = session

        logger.info(f"GeminiInsightEngine initialized with model: {model}")

    def is_available(self) -> bool:
        return len(self.api_key) > 0

    async def generate(self, prompt: str, generation_config: GenerationConfig) -> Dict[str, Any]:
        """Send one generateContent request.

        Returns:
            Decoded JSON response

        Raises:
            InsightHTTPError: If the API answers with a non-200 status
            aiohttp.ClientError: On connection problems
        """
        url = f"{self.base_url}/models/{self.model}:generateContent"
        data = {
            "contents": [
                {
                    "parts": [{"text": prompt}]
                }
            ],
            "generationConfig": generation_config.to_payload(),
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        if self._session is not None:
            return await self._post(self._session, url, headers, data)

        async with aiohttp.ClientSession() as session:
            return await self._post(session, url, headers, data)

    async def _post(self, session: aiohttp.ClientSession, url: str,
                    headers: Dict[str, str], data: Dict[str, Any]) -> Dict[str, Any]:
        async with session.post(url, headers=headers, json=data) as response:
            if response.status != 200:
                raise InsightHTTPError(response.status, await self._error_message(response))
            return await response.json()

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return (await response.text())[:500] or "Unknown error"
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message") or "Unknown error")
        return str(error or "Unknown error")


def extract_text(response: Any) -> str:
    """First text part of the first candidate, or '' for any other shape."""
    try:
        candidates = response.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return ""
        text = parts[0].get("text")
        return text if isinstance(text, str) else ""
    except (AttributeError, TypeError, IndexError, KeyError) as e:
        logger.error(f"Error extracting text from response: {e}")
        return ""
