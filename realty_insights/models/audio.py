"""Audio-related data models."""

import io
import wave
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class CaptureState(Enum):
    """Lifecycle of one AudioCapture."""
    IDLE = "idle"
    CAPTURING = "capturing"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CaptureConstraints:
    """Microphone constraints requested when capture starts.

    ``echo_cancellation`` and ``noise_suppression`` are advisory: the PyAudio
    backend records raw PCM and only logs them.
    """
    channels: int = 1
    sample_rate: int = 16000
    sample_width: int = 2  # bytes per sample, 16-bit
    echo_cancellation: bool = True
    noise_suppression: bool = True
    chunk_interval_seconds: float = 1.0
    input_device_index: Optional[int] = None

    @property
    def frames_per_chunk(self) -> int:
        return max(1, int(self.sample_rate * self.chunk_interval_seconds))


@dataclass(frozen=True)
class PcmFormat:
    """Raw PCM layout of captured audio."""
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channels * self.sample_width


@dataclass(frozen=True)
class AudioChunk:
    """One captured audio fragment. Not independently decodable."""
    sequence: int
    data: bytes
    offset_seconds: float  # Seconds since capture start
    peak_level: float = 0.0

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AudioRecording:
    """All chunks of one capture session joined into a single blob."""
    data: bytes
    mime_type: str
    chunk_count: int = 1
    pcm_format: Optional[PcmFormat] = None
    too_short: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.pcm_format is None:
            return None
        return self.size_bytes / self.pcm_format.bytes_per_second

    def container_bytes(self) -> bytes:
        """Bytes as they should be written to disk.

        Raw PCM declared as audio/wav gets a RIFF header; anything else is
        already a container and is returned untouched.
        """
        base_type = self.mime_type.split(";")[0].strip().lower()
        if base_type not in ("audio/wav", "audio/x-wav", "audio/wave") or self.pcm_format is None:
            return self.data
        if self.data[:4] == b"RIFF":
            return self.data

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(self.pcm_format.channels)
            wf.setsampwidth(self.pcm_format.sample_width)
            wf.setframerate(self.pcm_format.sample_rate)
            wf.writeframes(self.data)
        return buffer.getvalue()


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    total_bytes: int
    peak_level: float = 0.0
