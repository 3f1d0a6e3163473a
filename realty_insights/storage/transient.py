"""Transient file storage for audio handed to transcription providers.

A transient artifact lives for exactly one provider call: it is written just
before upload and deleted right after, whatever the outcome.
"""

import logging
import random
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, Union

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def unique_filename(prefix: str, extension: str = "") -> str:
    """Timestamp-based filename with a random suffix.

    Microsecond timestamp plus 8 random characters, so two calls in the same
    instant still get distinct names.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S_%fZ")
    random_suffix = ''.join(random.choices(_SUFFIX_ALPHABET, k=8))
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{prefix}-{timestamp}-{random_suffix}{extension}"


class TransientStorage(Protocol):
    """Write-then-delete storage boundary."""

    def write(self, data: bytes, name: str) -> Path:
        ...

    def delete(self, handle: Union[Path, str]) -> None:
        ...


class LocalTransientStorage:
    """Stores transient artifacts in a local directory."""

    def __init__(self, directory: Union[str, Path] = "./temp"):
        """Initialize transient storage.

        Args:
            directory: Directory for transient files, created on first write
        """
        self.directory = Path(directory)
        logger.info(f"LocalTransientStorage initialized with directory: {self.directory}")

    def write(self, data: bytes, name: str) -> Path:
        """Write data under name and return its path.

        Raises:
            FileExistsError: If a file with that name already exists
        """
        if Path(name).name != name:
            raise ValueError(f"Transient file name must not contain a path: {name!r}")

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / name
        # 'xb' refuses to overwrite a file owned by another call
        with open(path, 'xb') as f:
            f.write(data)

        logger.debug(f"Transient file written: {path} ({len(data)} bytes)")
        return path

    def delete(self, handle: Union[Path, str]) -> None:
        """Delete a transient file. Missing files are ignored."""
        path = Path(handle)
        path.unlink(missing_ok=True)
        logger.debug(f"Transient file deleted: {path}")

    def list_files(self) -> list:
        if not self.directory.exists():
            return []
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())
