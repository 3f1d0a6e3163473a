"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..insights import InsightClient
from ..models.formats import MAX_UPLOAD_BYTES
from ..transcription import TranscriptionClient
from .rate_limit import RateLimiter
from .routes import error_response, router

logger = logging.getLogger(__name__)


def create_app(transcription_client: TranscriptionClient,
               insight_client: InsightClient,
               rate_limiter: Optional[RateLimiter] = None,
               max_upload_bytes: int = MAX_UPLOAD_BYTES) -> FastAPI:
    """Create an API app around the given clients.

    Each app gets its own rate limiter unless one is passed in.
    """
    app = FastAPI(title="Realty Insights API", version=__version__)
    app.state.transcription_client = transcription_client
    app.state.insight_client = insight_client
    app.state.rate_limiter = rate_limiter or RateLimiter()
    app.state.max_upload_bytes = max_upload_bytes

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.info(f"Rejected invalid request to {request.url.path}: {messages}")
        return error_response(400, "Invalid request", details=messages)

    app.include_router(router)
    logger.info(f"API created (max upload {max_upload_bytes} bytes, "
                f"rate limit {app.state.rate_limiter.max_requests}/"
                f"{app.state.rate_limiter.window_seconds}s)")
    return app
