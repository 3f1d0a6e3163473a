"""Bounded microphone capture exposed as an async stream of audio chunks."""

import asyncio
import logging
import time
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

import numpy as np
import pyaudio

from ..exceptions import AlreadyCapturing, DeviceUnavailable
from ..models.audio import AudioChunk, AudioStats, CaptureConstraints, CaptureState, PcmFormat


logger = logging.getLogger(__name__)


class AudioCapture:
    """Records one voice question from the microphone.

    ``start()`` opens the input stream and arms a deadline; ``chunks()`` yields
    one AudioChunk per chunk interval until ``stop()`` is called, either by
    the caller or by the deadline. The hardware stream is released exactly
    once, whichever way the capture ends.
    """

    def __init__(
        self,
        max_duration_seconds: float = 15.0,
        pyaudio_factory: Optional[Callable[[], pyaudio.PyAudio]] = None,
    ):
        """Initialize audio capture.

        Args:
            max_duration_seconds: Capture stops automatically after this long
            pyaudio_factory: Callable creating the PyAudio instance
        """
        self.max_duration_seconds = max_duration_seconds
        self._pyaudio_factory = pyaudio_factory or pyaudio.PyAudio

        self.state = CaptureState.IDLE
        self.constraints: Optional[CaptureConstraints] = None
        self.stop_reason: Optional[str] = None

        # Hardware handles
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self._start_monotonic: Optional[float] = None
        self.total_chunks = 0
        self.total_bytes = 0
        self.peak_level = 0.0

        self._deadline: Optional[asyncio.TimerHandle] = None
        self._stopped: Optional[asyncio.Event] = None
        self._iterating = False

    @property
    def is_recording(self) -> bool:
        return self.state is CaptureState.CAPTURING

    @property
    def pcm_format(self) -> Optional[PcmFormat]:
        if self.constraints is None:
            return None
        return PcmFormat(
            sample_rate=self.constraints.sample_rate,
            channels=self.constraints.channels,
            sample_width=self.constraints.sample_width,
        )

    async def start(self, constraints: Optional[CaptureConstraints] = None) -> None:
        """Acquire the microphone and begin capturing.

        Raises:
            AlreadyCapturing: If a capture is running or still draining
            DeviceUnavailable: If permission is denied or no input device exists
        """
        if self.state is CaptureState.CAPTURING or self._iterating:
            raise AlreadyCapturing("Capture already in progress")

        constraints = constraints or CaptureConstraints()
        loop = asyncio.get_running_loop()

        logger.info(f"Starting audio capture: {constraints.sample_rate}Hz, "
                    f"{constraints.channels} channel(s), "
                    f"advisory echo_cancellation={constraints.echo_cancellation}, "
                    f"noise_suppression={constraints.noise_suppression}")
        try:
            await loop.run_in_executor(None, self._open_stream, constraints)
        except OSError as e:
            self._release_stream()
            logger.error(f"Microphone unavailable: {e}")
            raise DeviceUnavailable("Could not access the microphone", provider_message=str(e)) from e

        self.constraints = constraints
        self.state = CaptureState.CAPTURING
        self.stop_reason = None
        self.start_time = datetime.now()
        self._start_monotonic = time.monotonic()
        self.total_chunks = 0
        self.total_bytes = 0
        self.peak_level = 0.0
        self._stopped = asyncio.Event()
        self._deadline = loop.call_later(self.max_duration_seconds, self._on_deadline)

    def stop(self) -> None:
        """Stop capturing. Safe to call in any state; only the first call counts."""
        if self.state is not CaptureState.CAPTURING:
            logger.debug("stop() ignored: no capture in progress")
            return

        self._finish("manual")

    def _on_deadline(self) -> None:
        if self.state is CaptureState.CAPTURING:
            logger.info(f"Capture reached {self.max_duration_seconds}s limit")
            self._finish("timeout")

    def _finish(self, reason: str) -> None:
        self.state = CaptureState.STOPPED
        self.stop_reason = reason
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

        # A read in flight still owns the stream; chunks() releases it on exit
        if not self._iterating:
            self._release_stream()

        if self._stopped is not None:
            self._stopped.set()
        logger.info(f"Capture stopped ({reason}). Total chunks: {self.total_chunks}")

    async def wait_stopped(self) -> None:
        if self._stopped is not None:
            await self._stopped.wait()

    async def chunks(self) -> AsyncIterator[AudioChunk]:
        """Yield captured chunks until the capture stops.

        The chunk being read when ``stop()`` is called is still yielded,
        then the sequence ends.
        """
        if self.state is not CaptureState.CAPTURING:
            return
        if self._iterating:
            raise RuntimeError("chunks() is already being consumed")

        self._iterating = True
        loop = asyncio.get_running_loop()
        try:
            while self.state is CaptureState.CAPTURING:
                try:
                    data = await loop.run_in_executor(None, self._read_chunk)
                except OSError as e:
                    logger.error(f"Error reading from microphone: {e}")
                    raise DeviceUnavailable("Microphone stream failed", provider_message=str(e)) from e

                if not data:
                    continue
                yield self._make_chunk(data)
        finally:
            self._iterating = False
            if self.state is CaptureState.CAPTURING:
                self._finish("aborted")
            self._release_stream()

    def close(self) -> None:
        """Tear down: stop any capture and release the hardware."""
        self.stop()
        if not self._iterating:
            self._release_stream()

    def _open_stream(self, constraints: CaptureConstraints) -> None:
        self.pyaudio_instance = self._pyaudio_factory()
        if constraints.input_device_index is None:
            # Raises IOError when the host has no default input device
            self.pyaudio_instance.get_default_input_device_info()

        self.stream = self.pyaudio_instance.open(
            format=pyaudio.get_format_from_width(constraints.sample_width),
            channels=constraints.channels,
            rate=constraints.sample_rate,
            input=True,
            frames_per_buffer=constraints.frames_per_chunk,
            input_device_index=constraints.input_device_index,
        )
        logger.info(f"Audio stream opened: {constraints.sample_rate}Hz, "
                    f"{constraints.frames_per_chunk} frames/chunk")

    def _read_chunk(self) -> bytes:
        stream = self.stream
        if stream is None:
            return b""
        return stream.read(self.constraints.frames_per_chunk, exception_on_overflow=False)

    def _make_chunk(self, data: bytes) -> AudioChunk:
        peak = self._peak_level(data)
        self.peak_level = max(self.peak_level, peak)
        chunk = AudioChunk(
            sequence=self.total_chunks,
            data=bytes(data),
            offset_seconds=time.monotonic() - (self._start_monotonic or time.monotonic()),
            peak_level=peak,
        )
        self.total_chunks += 1
        self.total_bytes += len(data)
        logger.debug(f"Captured chunk {chunk.sequence}: {len(data)} bytes, peak {peak:.2f}")
        return chunk

    def _peak_level(self, data: bytes) -> float:
        if self.constraints is None or self.constraints.sample_width != 2 or len(data) % 2:
            return 0.0
        samples = np.frombuffer(data, dtype=np.int16)
        if samples.size == 0:
            return 0.0
        return float(np.abs(samples.astype(np.int32)).max()) / 32768.0

    def _release_stream(self) -> None:
        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            logger.debug("Audio stream released")

        instance, self.pyaudio_instance = self.pyaudio_instance, None
        if instance is not None:
            instance.terminate()

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        constraints = self.constraints or CaptureConstraints()
        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=constraints.sample_rate,
            chunk_size=constraints.frames_per_chunk,
            total_chunks=self.total_chunks,
            total_bytes=self.total_bytes,
            peak_level=self.peak_level,
        )
