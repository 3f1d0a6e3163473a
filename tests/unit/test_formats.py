"""Unit tests for audio format validation and transcription requests."""

import pytest

from realty_insights.exceptions import InvalidFormat
from realty_insights.models.audio import AudioRecording
from realty_insights.models.formats import (
    MAX_UPLOAD_BYTES,
    SUPPORTED_FORMATS,
    base_mime_type,
    extension_for,
    is_supported_format,
    resolve_mime_type,
)
from realty_insights.models.transcription import TranscriptionRequest


@pytest.mark.unit
class TestFormatValidation:

    @pytest.mark.parametrize("mime_type, filename, expected", [
        ("audio/webm", "clip.webm", True),
        ("audio/webm", "clip.xyz", True),
        ("audio/mp3", "clip.xyz", True),
        ("application/octet-stream", "clip.wav", True),
        ("application/octet-stream", "clip.m4a", True),
        ("", "CLIP.MP3", True),
        ("audio/webm;codecs=opus", None, True),
        ("video/mp4", "clip.xyz", False),
        ("application/octet-stream", None, False),
        (None, "notes.txt", False),
    ])
    def test_mime_type_or_extension_accepts(self, mime_type, filename, expected):
        assert is_supported_format(mime_type, filename) is expected

    def test_resolve_prefers_supported_source_type(self):
        assert resolve_mime_type("audio/ogg", "clip.wav") == "audio/ogg"

    def test_resolve_falls_back_to_extension(self):
        assert resolve_mime_type("application/octet-stream", "clip.m4a") == "audio/mp4"
        assert resolve_mime_type("", "clip.mpeg") == "audio/mpeg"

    def test_resolve_unknown(self):
        assert resolve_mime_type("text/plain", "notes.txt") is None

    def test_base_mime_type_strips_parameters(self):
        assert base_mime_type("Audio/WebM; codecs=opus") == "audio/webm"

    def test_extension_for(self):
        assert extension_for("audio/wav") == ".wav"
        assert extension_for("audio/mp4") == ".m4a"
        assert extension_for("text/plain") == ""

    def test_supported_format_listing(self):
        extensions = {f.extension for f in SUPPORTED_FORMATS}

        assert extensions == {".webm", ".mp3", ".mpeg", ".wav", ".ogg", ".m4a"}
        assert MAX_UPLOAD_BYTES == 100 * 1024 * 1024


@pytest.mark.unit
class TestTranscriptionRequest:

    def test_from_recording_uses_source_type(self):
        recording = AudioRecording(data=b"x" * 10, mime_type="audio/webm")

        request = TranscriptionRequest.from_recording(recording, "question.webm")

        assert request.mime_type == "audio/webm"
        assert request.filename.startswith("transcribe-")
        assert request.filename.endswith(".webm")
        assert request.display_name == "question.webm"

    def test_generic_type_resolved_from_extension(self):
        recording = AudioRecording(data=b"x", mime_type="application/octet-stream")

        request = TranscriptionRequest.from_recording(recording, "memo.m4a")

        assert request.mime_type == "audio/mp4"
        assert request.filename.endswith(".m4a")

    def test_unknown_extension_uses_type_extension(self):
        recording = AudioRecording(data=b"x", mime_type="audio/ogg")

        request = TranscriptionRequest.from_recording(recording, "upload.xyz")

        assert request.filename.endswith(".ogg")
        assert request.display_name == "upload.xyz"

    def test_without_filename(self):
        recording = AudioRecording(data=b"x", mime_type="audio/wav")

        request = TranscriptionRequest.from_recording(recording)

        assert request.display_name == request.filename
        assert request.filename.endswith(".wav")

    def test_unsupported_format_raises(self):
        recording = AudioRecording(data=b"x", mime_type="video/mp4")

        with pytest.raises(InvalidFormat):
            TranscriptionRequest.from_recording(recording, "movie.mov")

    def test_filenames_differ_per_request(self):
        recording = AudioRecording(data=b"x", mime_type="audio/wav")

        first = TranscriptionRequest.from_recording(recording)
        second = TranscriptionRequest.from_recording(recording)

        assert first.filename != second.filename
