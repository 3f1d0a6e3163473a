"""Integration tests for the complete voice question workflow."""

import asyncio
import io
import time
import uuid
import wave
from pathlib import Path

import pytest

from realty_insights.audio.assembler import AudioAssembler
from realty_insights.audio.capture import AudioCapture
from realty_insights.chat import ChatOrchestrator, ChatPublisher
from realty_insights.insights.client import InsightClient
from realty_insights.models.analytics import ResponseKind
from realty_insights.models.chat import ChatStatus, MessageRole
from realty_insights.storage.transient import LocalTransientStorage
from realty_insights.transcription.client import TranscriptionClient


@pytest.fixture
def slow_stream(mock_pyaudio, sample_audio_chunk):
    """Make the mock stream behave like a real one: each read blocks briefly."""
    def read(*args, **kwargs):
        time.sleep(0.01)
        return sample_audio_chunk

    mock_pyaudio['stream'].read.side_effect = read
    return mock_pyaudio


@pytest.fixture
def pipeline(temp_data_dir, make_provider, make_engine, gemini_reply, sample_snapshot, recording_sleep):
    """Real capture, assembler and clients; fake remote providers."""

    def _build(max_duration_seconds=15.0, auto_submit=False, answers=None):
        storage = LocalTransientStorage(Path(temp_data_dir) / "temp")
        provider = make_provider(text="What's our conversion rate?")
        engine = make_engine(answers if answers is not None else [gemini_reply("Conversion is **11.3%**.")])
        suffix = uuid.uuid4().hex
        orchestrator = ChatOrchestrator(
            capture_factory=lambda: AudioCapture(max_duration_seconds=max_duration_seconds),
            assembler=AudioAssembler(),
            transcription_client=TranscriptionClient(provider, storage, min_recording_bytes=4096),
            insight_client=InsightClient(engine, sleep=recording_sleep),
            snapshot_provider=lambda: sample_snapshot,
            publisher=ChatPublisher(f"it_{suffix}.message", f"it_{suffix}.status"),
            auto_submit=auto_submit,
        )
        return orchestrator, provider, engine, storage

    return _build


@pytest.mark.integration
class TestVoicePipelineIntegration:
    """Microphone to transcript to insight, with only the remote APIs faked."""

    async def test_manual_stop_workflow(self, slow_stream, pipeline, sample_audio_chunk):
        orchestrator, provider, engine, storage = pipeline()

        assert await orchestrator.start_recording() is True
        await asyncio.sleep(0.1)
        orchestrator.stop_recording()
        await asyncio.wait_for(orchestrator.wait_until_idle(), timeout=5)

        # Capture released the hardware
        slow_stream['stream'].close.assert_called_once()
        slow_stream['instance'].terminate.assert_called_once()

        # The provider saw a valid WAV of whole chunks
        upload = provider.uploads[0]
        assert upload["mime_type"] == "audio/wav"
        with wave.open(io.BytesIO(upload["content"]), "rb") as wf:
            assert wf.getframerate() == 16000
            frames = wf.readframes(wf.getnframes())
        assert len(frames) > 0
        assert len(frames) % len(sample_audio_chunk) == 0
        assert storage.list_files() == []

        assert orchestrator.status is ChatStatus.IDLE
        assert orchestrator.input_text == "What's our conversion rate?"

        answer = await orchestrator.submit()

        assert answer.kind is ResponseKind.INSIGHT
        assert answer.content == "Conversion is **11.3%**."
        roles = [message.role for message in orchestrator.messages]
        assert roles == [MessageRole.ASSISTANT, MessageRole.ASSISTANT, MessageRole.USER, MessageRole.ASSISTANT]
        assert engine.prompts[0].endswith("User question: What's our conversion rate?")

    async def test_deadline_stops_capture_and_auto_submits(self, slow_stream, pipeline, server_error):
        orchestrator, provider, engine, _ = pipeline(max_duration_seconds=0.1, auto_submit=True,
                                                     answers=[server_error] * 3)

        await orchestrator.start_recording()
        await asyncio.wait_for(orchestrator.wait_until_idle(), timeout=5)

        assert len(provider.uploads) == 1
        assert len(engine.prompts) == 3
        assert "Conversion Rate Analysis" in orchestrator.messages[-1].content
        assert orchestrator.status is ChatStatus.IDLE

    async def test_microphone_missing(self, mock_pyaudio, pipeline):
        mock_pyaudio['instance'].get_default_input_device_info.side_effect = OSError("No Default Input Device Available")
        orchestrator, provider, _, _ = pipeline()

        assert await orchestrator.start_recording() is False

        assert "couldn't access your microphone" in orchestrator.messages[-1].content
        assert provider.uploads == []
        assert orchestrator.input_enabled is True

    async def test_second_recording_after_first(self, slow_stream, pipeline):
        orchestrator, provider, _, _ = pipeline()

        for _ in range(2):
            await orchestrator.start_recording()
            await asyncio.sleep(0.05)
            orchestrator.stop_recording()
            await asyncio.wait_for(orchestrator.wait_until_idle(), timeout=5)

        assert len(provider.uploads) == 2
        assert provider.uploads[0]["path"] != provider.uploads[1]["path"]
