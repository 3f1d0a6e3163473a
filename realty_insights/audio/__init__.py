"""Audio capture and assembly module."""

from .capture import AudioCapture
from .assembler import AudioAssembler

__all__ = [
    'AudioCapture',
    'AudioAssembler'
]
