"""Transcription-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TranscriptUpdate:
    """Incremental result from a transcription backend.

    ``text`` is the backend's best guess for everything heard so far, not a
    delta: it supersedes any previously delivered text.
    """
    text: Optional[str] = None
    is_final: bool = False
    error: Optional[str] = None
