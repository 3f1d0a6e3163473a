"""Transient storage for audio artifacts."""

from .transient import LocalTransientStorage, TransientStorage, unique_filename

__all__ = [
    "LocalTransientStorage",
    "TransientStorage",
    "unique_filename",
]
