"""Audio sources feeding the transcription session."""

from .base import AbstractAudioSource
from .capture import MicrophoneSource, microphone_available
from .wave_source import WaveFileSource

__all__ = [
    'AbstractAudioSource',
    'MicrophoneSource',
    'WaveFileSource',
    'microphone_available',
]
