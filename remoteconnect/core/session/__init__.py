from core.session.controller import SessionController
from core.session.errors import (
    AlreadyActive,
    ConnectionFailed,
    CredentialsMissing,
    ListingFailed,
    MountFailed,
    SessionError,
    ToolNotInstalled,
    TransferFailed,
)
from core.session.history import NavigationHistory

__all__ = [
    "SessionController",
    "SessionError",
    "AlreadyActive",
    "ConnectionFailed",
    "CredentialsMissing",
    "ListingFailed",
    "MountFailed",
    "ToolNotInstalled",
    "TransferFailed",
    "NavigationHistory",
]
