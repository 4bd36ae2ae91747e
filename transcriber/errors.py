"""Exceptions raised by the session and its collaborators."""


class StartError(Exception):
    """Recording could not be started."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotAuthorizedError(StartError):
    """start() was called without a granted authorization."""


class AlreadyRecordingError(StartError):
    def __init__(self):
        super().__init__("Session is already recording")


class AudioUnavailableError(StartError):
    """The audio source could not be opened."""


class BackendUnavailableError(StartError):
    """The transcription backend could not be created or started."""


class AudioCaptureError(Exception):
    """Raised by audio sources when the capture device cannot be used."""


class BackendError(Exception):
    """Raised by transcription backends when the service cannot be used."""


class AnnotationError(Exception):
    """Raised by lexical annotators when a text cannot be analyzed."""
