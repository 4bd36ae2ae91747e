"""Services layer for Transcriber application logic."""

from .transcription_session import TranscriptionSession
from .session_factory import create_session

__all__ = [
    "TranscriptionSession",
    "create_session",
]
