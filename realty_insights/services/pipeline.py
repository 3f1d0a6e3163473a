"""Builds the voice and insight pipeline components from configuration."""

import json
import logging
from pathlib import Path
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..audio import AudioAssembler, AudioCapture
from ..chat import ChatOrchestrator, ChatPublisher
from ..config import RealtyInsightsConfig
from ..exceptions import ConfigurationError
from ..insights import FallbackResponder, GeminiInsightEngine, GenerationConfig, InsightClient
from ..models.analytics import AnalyticsSnapshot
from ..storage import LocalTransientStorage
from ..transcription import (
    AbstractTranscriptionProvider,
    GeminiTranscriptionProvider,
    GoogleSpeechProvider,
    TranscriptionClient,
)

logger = logging.getLogger(__name__)


class FileSnapshotProvider:
    """Reads the analytics snapshot from a JSON file on every call.

    Without a path, or while the file does not exist, an empty snapshot is
    returned so questions can still be answered (with little to go on).
    """

    def __init__(self, path: Optional[str]):
        self.path = Path(path) if path else None

    def __call__(self) -> AnalyticsSnapshot:
        if self.path is None or not self.path.exists():
            logger.debug(f"No analytics snapshot at {self.path}, using empty snapshot")
            return AnalyticsSnapshot()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return AnalyticsSnapshot.model_validate(json.load(f))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid analytics snapshot {self.path}: {e}") from e


def create_transcription_provider(config: RealtyInsightsConfig) -> AbstractTranscriptionProvider:
    """Create the transcription provider named by transcription.provider."""
    provider_name = config.get('transcription.provider', 'gemini')

    if provider_name == 'gemini':
        return GeminiTranscriptionProvider(
            api_key=config.get_api_key(),
            model=config.get('transcription.model', 'gemini-2.5-flash'),
        )

    if provider_name == 'google_speech':
        logger.info("Initializing Google Speech provider...")
        return GoogleSpeechProvider(
            credentials_path=config.get_google_credentials_path(),
            language=config.get('google_cloud.language', 'en-US'),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
            request_timeout=float(config.get('gemini.request_timeout_seconds', 30)),
        )

    raise ConfigurationError(f"Unknown transcription provider: {provider_name}")


def create_transcription_client(config: RealtyInsightsConfig,
                                provider: Optional[AbstractTranscriptionProvider] = None) -> TranscriptionClient:
    provider = provider or create_transcription_provider(config)
    storage = LocalTransientStorage(config.get_temp_directory())
    logger.info(f"Transcription via {provider.service_name}, temp files in {storage.directory}")
    return TranscriptionClient(
        provider=provider,
        storage=storage,
        min_recording_bytes=int(config.get('audio.min_recording_bytes', 4096)),
    )


def create_insight_client(config: RealtyInsightsConfig,
                          session: Optional[aiohttp.ClientSession] = None) -> InsightClient:
    engine_kwargs = {}
    base_url = config.get('gemini.base_url')
    if base_url:
        engine_kwargs['base_url'] = base_url

    engine = GeminiInsightEngine(
        api_key=config.get_api_key(),
        model=config.get('gemini.model', 'gemini-2.5-flash'),
        session=session,
        **engine_kwargs,
    )
    generation_config = GenerationConfig(
        temperature=float(config.get('gemini.temperature', 0.3)),
        max_output_tokens=int(config.get('gemini.max_output_tokens', 1500)),
        top_p=float(config.get('gemini.top_p', 0.8)),
        top_k=int(config.get('gemini.top_k', 40)),
    )
    return InsightClient(
        engine=engine,
        fallback=FallbackResponder(),
        max_retries=int(config.get('gemini.max_retries', 3)),
        request_timeout=float(config.get('gemini.request_timeout_seconds', 30)),
        backoff_base=float(config.get('gemini.backoff_base_seconds', 2)),
        generation_config=generation_config,
    )


def create_chat_orchestrator(config: RealtyInsightsConfig,
                             publisher: Optional[ChatPublisher] = None,
                             transcription_client: Optional[TranscriptionClient] = None,
                             insight_client: Optional[InsightClient] = None) -> ChatOrchestrator:
    max_duration = float(config.get('audio.max_duration_seconds', 15))
    return ChatOrchestrator(
        capture_factory=lambda: AudioCapture(max_duration_seconds=max_duration),
        assembler=AudioAssembler(int(config.get('audio.min_recording_bytes', 4096))),
        transcription_client=transcription_client or create_transcription_client(config),
        insight_client=insight_client or create_insight_client(config),
        snapshot_provider=FileSnapshotProvider(config.get_snapshot_path()),
        publisher=publisher,
        constraints=config.get_capture_constraints(),
        auto_submit=bool(config.get('chat.auto_submit', False)),
    )
