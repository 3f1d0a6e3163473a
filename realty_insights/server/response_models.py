"""Response models for the HTTP API. Serialized with camelCase keys."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(_CamelModel):
    error: str
    details: Optional[str] = None
    timestamp: str


class TranscriptionResponse(_CamelModel):
    success: bool = True
    transcription: str
    filename: Optional[str] = None
    file_size: int
    mime_type: Optional[str] = None
    processing_time: float
    processed_at: str


class FormatInfo(_CamelModel):
    mime_type: str
    extension: str
    description: str


class FormatsResponse(_CamelModel):
    success: bool = True
    supported_formats: List[FormatInfo]
    max_file_size: str


class ServiceStatusResponse(_CamelModel):
    success: bool = True
    message: str
    endpoints: Dict[str, str]


class InsightResponse(_CamelModel):
    success: bool = True
    data: str
    source: str
    kind: str
    attempts: int = 0
    error_kind: Optional[str] = None


class HealthResponse(_CamelModel):
    status: str = "ok"
    transcription_provider: str
    transcription_configured: bool
    insights_configured: bool
