"""Data models for the Transcriber application."""

from .annotation import TagKind, Annotation
from .audio import AudioStats, AudioFrame
from .session import (
    SessionState,
    SessionStatus,
    AuthorizationState,
    AuthorizationStatus,
    AUTHORIZATION_REASONS,
    SessionSnapshot,
)
from .transcription import TranscriptUpdate

__all__ = [
    "TagKind",
    "Annotation",
    "AudioStats",
    "AudioFrame",
    "SessionState",
    "SessionStatus",
    "AuthorizationState",
    "AuthorizationStatus",
    "AUTHORIZATION_REASONS",
    "SessionSnapshot",
    "TranscriptUpdate",
]
