"""Transcription backends for Transcriber."""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptUpdate
from .google_backend import GoogleStreamingSpeechBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptUpdate",
    "GoogleStreamingSpeechBackend",
]
