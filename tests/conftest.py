"""Pytest configuration and fixtures for Realty Insights tests."""

import pytest
import tempfile
import logging
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, patch
import numpy as np
import wave

from realty_insights.insights.engine import GenerationConfig, InsightHTTPError
from realty_insights.models.analytics import AnalyticsSnapshot
from realty_insights.transcription.base import AbstractTranscriptionProvider, UploadHandle


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SNAPSHOT_DATA = {
    "funnelData": [
        {"name": "Leads Captured", "value": 1200},
        {"name": "Contacted", "value": 900},
        {"name": "Attended Demo", "value": 650},
        {"name": "Site Visit Booked", "value": 420},
        {"name": "Token Issued", "value": 210},
        {"name": "Registered", "value": 135},
    ],
    "monthlyLeadData": [
        {"name": "Jan", "leads": 150},
        {"name": "Feb", "leads": 180},
        {"name": "Mar", "leads": 210},
        {"name": "Apr", "leads": 240},
        {"name": "May", "leads": 270},
        {"name": "Jun", "leads": 320},
    ],
    "leadSourceData": [
        {"name": "Website", "value": 35},
        {"name": "Referral", "value": 25},
        {"name": "Property Portal", "value": 20},
        {"name": "Social Media", "value": 15},
        {"name": "Other", "value": 5},
    ],
    "propertyPerformanceData": [
        {"name": "Olive Heights", "leads": 98, "siteVisits": 33, "tokens": 21},
        {"name": "Riveria Complex", "leads": 55, "siteVisits": 25, "tokens": 20},
        {"name": "Sapphire Greens", "leads": 60, "siteVisits": 39, "tokens": 30},
        {"name": "Royal Classic", "leads": 49, "siteVisits": 19, "tokens": 15},
    ],
}


class FakeTranscriptionProvider(AbstractTranscriptionProvider):
    """In-memory provider with injectable failures."""

    service_name = "Fake"

    def __init__(self, text: str = "what is our conversion rate",
                 upload_error: Optional[Exception] = None,
                 generate_error: Optional[Exception] = None,
                 available: bool = True):
        self.text = text
        self.upload_error = upload_error
        self.generate_error = generate_error
        self.available = available
        self.uploads: List[dict] = []
        self.released: List[UploadHandle] = []
        self.instructions: List[str] = []

    def is_available(self) -> bool:
        return self.available

    async def upload(self, path, mime_type, display_name):
        path = Path(path)
        self.uploads.append({
            "path": path,
            "exists": path.exists(),
            "content": path.read_bytes() if path.exists() else b"",
            "mime_type": mime_type,
            "display_name": display_name,
        })
        if self.upload_error is not None:
            raise self.upload_error
        return UploadHandle(uri=f"fake://{path.name}", mime_type=mime_type, name=path.name)

    async def generate_transcript(self, handle, mime_type, instruction):
        self.instructions.append(instruction)
        if self.generate_error is not None:
            raise self.generate_error
        return self.text

    async def release(self, handle):
        self.released.append(handle)


class FakeInsightEngine:
    """Insight engine returning scripted responses or raising scripted errors."""

    def __init__(self, responses=None, available: bool = True):
        self.responses = list(responses or [])
        self.available = available
        self.prompts: List[str] = []
        self.configs: List[GenerationConfig] = []

    def is_available(self) -> bool:
        return self.available

    async def generate(self, prompt, generation_config):
        self.prompts.append(prompt)
        self.configs.append(generation_config)
        outcome = self.responses.pop(0) if self.responses else {}
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def gemini_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """One second of 16 kHz, 16-bit mono sine wave."""
    sample_rate = 16000
    freq = 440  # A4 note

    t = np.linspace(0, 1.0, sample_rate, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767 * 0.5).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = sample_audio_chunk
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {"index": 0, "name": "mock"}

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)  # Mono
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(16000)  # 16kHz
        wf.writeframes(sample_audio_chunk)

    return str(file_path)


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz

        Returns:
            bytes: Audio data as bytes
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)  # 440 Hz sine wave
        elif pattern == "noise":
            wave_data = np.random.uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        # Convert to 16-bit integers
        audio_data = (wave_data * 32767).astype(np.int16)
        return audio_data.tobytes()

    return generate_audio


@pytest.fixture
def snapshot_data():
    return {key: [dict(item) for item in items] for key, items in SNAPSHOT_DATA.items()}


@pytest.fixture
def sample_snapshot(snapshot_data):
    return AnalyticsSnapshot.model_validate(snapshot_data)


@pytest.fixture
def fake_provider():
    return FakeTranscriptionProvider()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def server_error():
    return InsightHTTPError(500, "Internal error")


@pytest.fixture
def make_provider():
    """Factory for FakeTranscriptionProvider instances."""
    return FakeTranscriptionProvider


@pytest.fixture
def make_engine():
    """Factory for FakeInsightEngine instances."""
    return FakeInsightEngine


@pytest.fixture
def gemini_reply():
    """Builds a generateContent response body around a text answer."""
    return gemini_response
