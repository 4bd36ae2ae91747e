"""Terminal front end for Transcriber."""

from .transcription_screen import TranscriptionScreen

__all__ = ["TranscriptionScreen"]
