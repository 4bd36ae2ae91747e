"""Session lifecycle and observable state models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .annotation import Annotation


class SessionState(Enum):
    """Lifecycle state of a transcription session."""
    IDLE = "idle"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SessionStatus:
    """Current session state plus the reason for DENIED and STOPPED."""
    state: SessionState
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "SessionStatus":
        return cls(SessionState.IDLE)

    @classmethod
    def authorizing(cls) -> "SessionStatus":
        return cls(SessionState.AUTHORIZING)

    @classmethod
    def authorized(cls) -> "SessionStatus":
        return cls(SessionState.AUTHORIZED)

    @classmethod
    def denied(cls, reason: str) -> "SessionStatus":
        return cls(SessionState.DENIED, reason)

    @classmethod
    def recording(cls) -> "SessionStatus":
        return cls(SessionState.RECORDING)

    @classmethod
    def stopped(cls, reason: str) -> "SessionStatus":
        return cls(SessionState.STOPPED, reason)

    def __str__(self) -> str:
        if self.reason:
            return f"{self.state.value} ({self.reason})"
        return self.state.value


class AuthorizationStatus(Enum):
    """Answer of a permission provider."""
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    AUTHORIZED = "authorized"


AUTHORIZATION_REASONS = {
    AuthorizationStatus.NOT_DETERMINED: "Not determined.",
    AuthorizationStatus.DENIED: "Denied.",
    AuthorizationStatus.RESTRICTED: "Restricted.",
    AuthorizationStatus.AUTHORIZED: "Authorized",
}


@dataclass(frozen=True)
class AuthorizationState:
    """Whether recording is allowed, with a human-readable reason."""
    authorized: bool = False
    reason: str = "Unknown"


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a caller can observe about a session at one instant."""
    transcript: str = ""
    annotations: Tuple[Annotation, ...] = ()
    status: SessionStatus = SessionStatus(SessionState.IDLE)
    authorization: AuthorizationState = AuthorizationState()
    status_message: str = "Unknown"
