"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0


@dataclass
class AudioFrame:
    """A block of 16-bit PCM samples pushed by an audio source."""
    data: bytes
    timestamp: float  # Unix timestamp when the frame was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
