"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging

from ..models.audio import AudioFrame
from ..models.transcription import TranscriptUpdate

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TranscriptUpdate], None]
AvailabilityCallback = Callable[[bool], None]


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for streaming transcription backends.

    A backend instance serves a single recording: it is started once,
    fed frames, and cancelled when the recording ends.
    """

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def start(self,
              on_update: UpdateCallback,
              on_availability_changed: Optional[AvailabilityCallback] = None) -> None:
        """Connect to the service and begin accepting frames.

        Updates are delivered asynchronously through ``on_update``; each one
        carries the full current transcript, the final flag and an optional
        error description.

        Raises:
            BackendError: if the service cannot be reached or configured.
        """

    @abstractmethod
    def submit_frame(self, frame: AudioFrame) -> None:
        """Queue one audio frame for recognition. Called from the capture thread."""

    def finish(self) -> None:
        """Signal that no more audio will be submitted."""
        logger.debug(f"{type(self).__name__} does not support finishing early")

    @abstractmethod
    def cancel(self) -> None:
        """Stop recognition and release resources. Safe to call more than once."""
