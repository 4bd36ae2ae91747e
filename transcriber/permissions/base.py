"""Abstract base class for permission providers."""

from abc import ABC, abstractmethod
from typing import Callable

from ..models.session import AuthorizationStatus

AuthorizationCallback = Callable[[AuthorizationStatus], None]


class AbstractPermissionProvider(ABC):
    """Asks whether microphone capture and speech recognition may be used."""

    @abstractmethod
    def request_authorization(self, callback: AuthorizationCallback) -> None:
        """Ask for consent and report the answer through ``callback``.

        The callback may fire on any thread, and may never fire at all.
        """
