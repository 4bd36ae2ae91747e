"""Consent based on usable service credentials and an input device."""

import logging
import threading
from typing import Optional

from google.oauth2 import service_account

from .base import AbstractPermissionProvider, AuthorizationCallback
from ..audio.capture import microphone_available
from ..models.session import AuthorizationStatus

logger = logging.getLogger(__name__)


class CredentialsPermissionProvider(AbstractPermissionProvider):
    """Grant recording once the Google credentials load and a microphone exists.

    Answers NOT_DETERMINED when no credentials are configured, DENIED when
    they cannot be loaded and RESTRICTED when there is no input device.
    """

    def __init__(self, credentials_path: Optional[str],
                 check_microphone: bool = True,
                 device_index: Optional[int] = None):
        self.credentials_path = credentials_path
        self.check_microphone = check_microphone
        self.device_index = device_index

    def request_authorization(self, callback: AuthorizationCallback) -> None:
        thread = threading.Thread(target=self._answer, args=(callback,), daemon=True)
        thread.name = "AuthorizationThread"
        thread.start()

    def _answer(self, callback: AuthorizationCallback) -> None:
        status = self.check()
        logger.info(f"Authorization answered: {status.value}")
        callback(status)

    def check(self) -> AuthorizationStatus:
        """Evaluate consent synchronously."""
        if not self.credentials_path:
            logger.warning("No Google credentials configured")
            return AuthorizationStatus.NOT_DETERMINED

        try:
            service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Google credentials rejected: {e}")
            return AuthorizationStatus.DENIED

        if self.check_microphone and not microphone_available(self.device_index):
            logger.warning("No microphone available")
            return AuthorizationStatus.RESTRICTED

        return AuthorizationStatus.AUTHORIZED
