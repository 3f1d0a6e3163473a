"""Supported audio formats for transcription.

Browsers report MIME types unreliably, so a file is accepted when either its
MIME type or its filename extension is on the allow-list.
"""

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class AudioFormat:
    mime_type: str
    extension: str
    description: str


SUPPORTED_FORMATS: List[AudioFormat] = [
    AudioFormat("audio/webm", ".webm", "WebM audio"),
    AudioFormat("audio/mp3", ".mp3", "MP3 audio"),
    AudioFormat("audio/mpeg", ".mpeg", "MPEG audio"),
    AudioFormat("audio/wav", ".wav", "WAV audio"),
    AudioFormat("audio/ogg", ".ogg", "OGG audio"),
    AudioFormat("audio/mp4", ".m4a", "M4A audio"),
]

SUPPORTED_MIME_TYPES = frozenset(f.mime_type for f in SUPPORTED_FORMATS)

EXTENSION_MIME_MAP = {f.extension: f.mime_type for f in SUPPORTED_FORMATS}

MIME_EXTENSION_MAP = {f.mime_type: f.extension for f in SUPPORTED_FORMATS}

GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})

MAX_UPLOAD_BYTES = 100 * 1024 * 1024


def base_mime_type(mime_type: Optional[str]) -> str:
    """'audio/webm;codecs=opus' -> 'audio/webm'."""
    if not mime_type:
        return ""
    return mime_type.split(";")[0].strip().lower()


def file_extension(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lower()


def is_supported_format(mime_type: Optional[str], filename: Optional[str]) -> bool:
    """MIME type match OR extension match."""
    return (base_mime_type(mime_type) in SUPPORTED_MIME_TYPES
            or file_extension(filename) in EXTENSION_MIME_MAP)


def resolve_mime_type(mime_type: Optional[str], filename: Optional[str]) -> Optional[str]:
    """Pick the MIME type to send to the provider.

    The source type wins when it is supported; otherwise the filename
    extension decides. Returns None when neither is usable.
    """
    base = base_mime_type(mime_type)
    if base in SUPPORTED_MIME_TYPES:
        return base
    return EXTENSION_MIME_MAP.get(file_extension(filename))


def extension_for(mime_type: str) -> str:
    return MIME_EXTENSION_MAP.get(base_mime_type(mime_type), "")
