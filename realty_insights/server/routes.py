"""Transcription, insight and health endpoints."""

import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from ..models.analytics import InsightRequest
from ..models.audio import AudioRecording
from ..models.formats import SUPPORTED_FORMATS
from .dependencies import InsightDep, TranscriptionDep, enforce_rate_limit
from .response_models import (
    ErrorResponse,
    FormatInfo,
    FormatsResponse,
    HealthResponse,
    InsightResponse,
    ServiceStatusResponse,
    TranscriptionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details, timestamp=_timestamp())
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def _max_file_size_label(max_bytes: int) -> str:
    return f"{max_bytes // (1024 * 1024)}MB"


@router.post("/audio/transcribe", response_model=TranscriptionResponse)
async def transcribe_audio(
    request: Request,
    client: TranscriptionDep,
    audio: Annotated[Optional[UploadFile], File()] = None,
    filename: Annotated[Optional[str], Form()] = None,
):
    """Transcribe one uploaded audio file (multipart field ``audio``)."""
    if audio is None:
        return error_response(400, "No audio file provided")

    max_bytes = request.app.state.max_upload_bytes
    if audio.size is not None and audio.size > max_bytes:
        return error_response(413, f"Audio file exceeds {_max_file_size_label(max_bytes)} limit")

    data = await audio.read(max_bytes + 1)
    if len(data) > max_bytes:
        return error_response(413, f"Audio file exceeds {_max_file_size_label(max_bytes)} limit")
    if not data:
        return error_response(400, "Audio file is empty")

    source_filename = filename or audio.filename
    logger.info(f"Received transcription upload: {source_filename} "
                f"({len(data)} bytes, {audio.content_type})")

    recording = AudioRecording(data=data, mime_type=audio.content_type or "")
    result = await client.transcribe(recording, source_filename)

    if not result.ok:
        error = result.error
        return error_response(error.status_code, str(error), details=error.provider_message or error.kind)

    return TranscriptionResponse(
        transcription=result.text,
        filename=result.filename,
        file_size=len(data),
        mime_type=audio.content_type or result.mime_type,
        processing_time=round(result.processing_time, 3),
        processed_at=result.processed_at.isoformat(),
    )


@router.get("/audio/transcribe", response_model=None)
async def transcription_status(request: Request, action: Optional[str] = None):
    """Service status, or the supported formats with ``?action=formats``."""
    if action == "formats":
        return FormatsResponse(
            supported_formats=[
                FormatInfo(mime_type=f.mime_type, extension=f.extension, description=f.description)
                for f in SUPPORTED_FORMATS
            ],
            max_file_size=_max_file_size_label(request.app.state.max_upload_bytes),
        ).model_dump(by_alias=True)

    return ServiceStatusResponse(
        message="Audio transcription service is available",
        endpoints={
            "POST": "/api/audio/transcribe - Transcribe audio file",
            "GET": "/api/audio/transcribe?action=formats - Get supported formats",
        },
    ).model_dump(by_alias=True)


@router.post("/insights", response_model=InsightResponse,
             dependencies=[Depends(enforce_rate_limit)])
async def generate_insights(body: InsightRequest, client: InsightDep) -> InsightResponse:
    """Answer an analytics question about the posted snapshot."""
    result = await client.generate_insight(body.text, body.analytics_data)
    answer = result
    if not result.text.strip():
        logger.info("Empty insight answer, using fallback responder")
        answer = client.fallback_answer(body.text, body.analytics_data)

    return InsightResponse(
        data=answer.text,
        source=answer.source.value,
        kind=answer.kind.value,
        attempts=result.attempts,
        error_kind=result.error.kind if result.error else None,
    )


@router.get("/health", response_model=HealthResponse)
async def health(client: TranscriptionDep, insight_client: InsightDep) -> HealthResponse:
    """Report whether the providers are configured. Never exposes keys."""
    return HealthResponse(
        transcription_provider=client.provider.service_name,
        transcription_configured=client.is_available(),
        insights_configured=insight_client.is_available(),
    )
