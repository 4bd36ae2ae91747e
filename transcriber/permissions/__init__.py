"""Permission providers gating the start of a recording."""

from .base import AbstractPermissionProvider
from .credentials import CredentialsPermissionProvider
from ..models.session import AuthorizationStatus

__all__ = [
    "AbstractPermissionProvider",
    "CredentialsPermissionProvider",
    "AuthorizationStatus",
]
