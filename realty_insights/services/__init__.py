from .pipeline import (
    FileSnapshotProvider,
    create_chat_orchestrator,
    create_insight_client,
    create_transcription_client,
    create_transcription_provider,
)

__all__ = [
    "FileSnapshotProvider",
    "create_chat_orchestrator",
    "create_insight_client",
    "create_transcription_client",
    "create_transcription_provider",
]
