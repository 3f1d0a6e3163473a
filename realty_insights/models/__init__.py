"""Data models for the realty-insights pipeline."""

from .audio import (
    AudioChunk,
    AudioRecording,
    AudioStats,
    CaptureConstraints,
    CaptureState,
    PcmFormat,
)
from .analytics import (
    AnalyticsSnapshot,
    FunnelStage,
    InsightRequest,
    InsightResult,
    InsightSource,
    LeadSourceShare,
    PeriodLeads,
    PropertyPerformance,
    ResponseKind,
)
from .chat import ChatMessage, ChatStatus, ConversationState, MessageRole
from .transcription import TranscriptionRequest, TranscriptionResult

__all__ = [
    "AudioChunk",
    "AudioRecording",
    "AudioStats",
    "CaptureConstraints",
    "CaptureState",
    "PcmFormat",
    # Analytics / insights
    "AnalyticsSnapshot",
    "FunnelStage",
    "InsightRequest",
    "InsightResult",
    "InsightSource",
    "LeadSourceShare",
    "PeriodLeads",
    "PropertyPerformance",
    "ResponseKind",
    # Chat
    "ChatMessage",
    "ChatStatus",
    "ConversationState",
    "MessageRole",
    # Transcription
    "TranscriptionRequest",
    "TranscriptionResult",
]
