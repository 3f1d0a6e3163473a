"""Joins captured chunks into one recording."""

import logging
from typing import Iterable, Optional

from ..exceptions import EmptyInput, TooShort
from ..models.audio import AudioChunk, AudioRecording, PcmFormat

logger = logging.getLogger(__name__)

DEFAULT_MIN_RECORDING_BYTES = 4096


class AudioAssembler:
    """Concatenates AudioChunks into an AudioRecording.

    Pure: no I/O, and the same chunks with the same MIME type always give
    byte-identical output. Recordings under ``min_recording_bytes`` are
    returned flagged ``too_short`` so callers can tell the user to try again.
    """

    def __init__(self, min_recording_bytes: int = DEFAULT_MIN_RECORDING_BYTES):
        if min_recording_bytes < 0:
            raise ValueError("min_recording_bytes must be >= 0")
        self.min_recording_bytes = min_recording_bytes

    def assemble(self,
                 chunks: Iterable[AudioChunk],
                 mime_type: str,
                 pcm_format: Optional[PcmFormat] = None) -> AudioRecording:
        """Merge chunks in sequence order.

        Raises:
            EmptyInput: If there are no chunks
        """
        ordered = sorted(chunks, key=lambda chunk: chunk.sequence)
        if not ordered:
            raise EmptyInput("No audio was captured")

        data = b''.join(chunk.data for chunk in ordered)
        too_short = len(data) < self.min_recording_bytes

        if too_short:
            logger.info(f"Recording below minimum size: {len(data)} < {self.min_recording_bytes} bytes")
        else:
            logger.debug(f"Assembled {len(ordered)} chunks into {len(data)} bytes ({mime_type})")

        return AudioRecording(
            data=data,
            mime_type=mime_type,
            chunk_count=len(ordered),
            pcm_format=pcm_format,
            too_short=too_short,
        )

    def require_submittable(self, recording: AudioRecording) -> AudioRecording:
        """Return the recording, or raise TooShort if it is under the threshold."""
        if recording.too_short or recording.size_bytes < self.min_recording_bytes:
            raise TooShort(recording.size_bytes, self.min_recording_bytes)
        return recording
