"""Insight client: prompt building, retries with backoff, fallback on exhaustion."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from ..exceptions import (
    AuthFailed,
    InsightCancelled,
    InsightError,
    InsightTimeout,
    RateLimited,
    ServerError,
)
from ..models.analytics import AnalyticsSnapshot, InsightResult, InsightSource
from .engine import GenerationConfig, InsightEngine, InsightHTTPError, extract_text
from .fallback import FallbackResponder

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an AI analytics assistant for a real estate CRM system. Analyze the provided "
    "analytics data and answer the user's question about their real estate business "
    "performance. Be concise, professional, and provide actionable insights.\n\n"
    "Available analytics data:\n{analytics_json}\n\n"
    "Provide clear, data-driven insights based on the question. "
    "Format your response with clear sections."
)


def classify_http_error(error: InsightHTTPError) -> InsightError:
    """Map a provider HTTP status to a typed insight error."""
    if error.status == 429:
        return RateLimited("Insight provider rate limit exceeded", provider_message=error.message)
    if error.status in (401, 403):
        return AuthFailed("Insight provider rejected the API key", provider_message=error.message)
    return ServerError(f"Insight provider returned HTTP {error.status}", provider_message=error.message)


class InsightClient:
    """Answers analytics questions through an InsightEngine.

    Each attempt runs under its own timeout. Failed attempts are retried with
    exponential backoff; once retries are exhausted the fallback responder
    answers instead, so callers always get an InsightResult.
    """

    def __init__(self,
                 engine: InsightEngine,
                 fallback: Optional[FallbackResponder] = None,
                 max_retries: int = 3,
                 request_timeout: float = 30.0,
                 backoff_base: float = 2.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 generation_config: Optional[GenerationConfig] = None):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.engine = engine
        self.fallback = fallback or FallbackResponder()
        self.max_retries = max_retries
        self.request_timeout = request_timeout
        self.backoff_base = backoff_base
        self.sleep = sleep
        self.generation_config = generation_config or GenerationConfig()

    @staticmethod
    def build_prompt(question: str, snapshot: AnalyticsSnapshot) -> str:
        system = SYSTEM_INSTRUCTION.format(analytics_json=snapshot.to_prompt_json())
        return f"{system}\n\nUser question: {question}"

    def backoff_delay(self, attempt: int) -> float:
        return self.backoff_base ** attempt

    async def generate_insight(self, question: str, snapshot: AnalyticsSnapshot) -> InsightResult:
        """Answer one question about the snapshot.

        Args:
            question: User question, already trimmed
            snapshot: Analytics data the answer must be grounded in

        Returns:
            InsightResult from the provider, or the fallback answer with the
            last error recorded
        """
        if not self.engine.is_available():
            logger.warning("Insight provider API key not configured, using fallback")
            return self._fallback(question, snapshot,
                                  AuthFailed("Gemini API key not configured"), attempts=0)

        prompt = self.build_prompt(question, snapshot)
        last_error: Optional[InsightError] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await asyncio.wait_for(
                    self.engine.generate(prompt, self.generation_config),
                    timeout=self.request_timeout,
                )
                text = extract_text(response)
                logger.info(f"Insight generated on attempt {attempt} ({len(text)} chars)")
                return InsightResult(text=text, attempts=attempt)
            except asyncio.TimeoutError:
                last_error = InsightTimeout(f"Request timed out after {self.request_timeout}s")
            except InsightHTTPError as e:
                last_error = classify_http_error(e)
            except aiohttp.ClientError as e:
                last_error = ServerError("Failed to reach insight provider", provider_message=str(e))
            except ValueError as e:
                last_error = ServerError("Insight provider returned malformed JSON", provider_message=str(e))
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    raise
                last_error = InsightCancelled("Insight request was cancelled")
            except Exception as e:
                logger.error(f"Unexpected insight engine error: {e}", exc_info=True)
                last_error = ServerError("Insight engine failed", provider_message=str(e))

            logger.warning(f"Gemini API attempt {attempt} failed ({last_error.kind}): "
                           f"{last_error.provider_message or last_error}")

            if isinstance(last_error, AuthFailed):
                break
            if attempt < self.max_retries:
                delay = self.backoff_delay(attempt)
                logger.debug(f"Retrying insight request in {delay}s")
                await self.sleep(delay)

        return self._fallback(question, snapshot, last_error, attempts=attempt)

    def _fallback(self, question: str, snapshot: AnalyticsSnapshot,
                  error: Optional[InsightError], attempts: int) -> InsightResult:
        logger.info(f"Using fallback responder after {attempts} attempt(s)")
        answer = self.fallback.respond(question, snapshot)
        return InsightResult(
            text=answer.text,
            kind=answer.kind,
            source=InsightSource.FALLBACK,
            attempts=attempts,
            error=error,
        )

    def fallback_answer(self, question: str, snapshot: AnalyticsSnapshot) -> InsightResult:
        """Fallback responder's answer with no provider call."""
        return self.fallback.respond(question, snapshot)

    def is_available(self) -> bool:
        return self.engine.is_available()
