"""FastAPI dependencies. Everything hangs off ``app.state``, set by create_app."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ..insights import InsightClient
from ..transcription import TranscriptionClient
from .rate_limit import RateLimiter


def get_transcription_client(request: Request) -> TranscriptionClient:
    return request.app.state.transcription_client


def get_insight_client(request: Request) -> InsightClient:
    return request.app.state.insight_client


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_address(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(request: Request,
                       limiter: Annotated[RateLimiter, Depends(get_rate_limiter)]) -> None:
    decision = limiter.check(client_address(request))
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(int(decision.retry_after) + 1)},
        )


TranscriptionDep = Annotated[TranscriptionClient, Depends(get_transcription_client)]
InsightDep = Annotated[InsightClient, Depends(get_insight_client)]
