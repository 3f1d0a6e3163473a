"""HTTP API for transcription and analytics insights."""

from .app import create_app
from .rate_limit import RateLimitDecision, RateLimiter

__all__ = [
    "create_app",
    "RateLimitDecision",
    "RateLimiter",
]
