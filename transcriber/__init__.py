"""Transcriber: continuous speech transcription with periodic lexical annotation."""

__version__ = "0.1.0"
