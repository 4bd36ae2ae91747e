"""Abstract base class for audio sources."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..models.audio import AudioFrame

FrameCallback = Callable[[AudioFrame], None]
ClosedCallback = Callable[[Optional[str]], None]


class AbstractAudioSource(ABC):
    """Live audio input delivering frames through a push callback."""

    sample_rate: int = 16000
    channels: int = 1

    @abstractmethod
    def open(self, on_frame: FrameCallback, on_closed: Optional[ClosedCallback] = None) -> None:
        """Start capturing and push every frame to ``on_frame``.

        Frames are delivered from a capture thread. ``on_closed`` is called
        with a reason only when capture ends without ``close()`` being
        called (device failure, end of input).

        Raises:
            AudioCaptureError: if the input cannot be opened.
        """

    @abstractmethod
    def close(self) -> None:
        """Stop capturing. Safe to call more than once."""
