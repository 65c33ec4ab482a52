from __future__ import annotations


class SessionError(Exception):
    """Failure of a single requested operation; other sessions keep running."""


class CredentialsMissing(SessionError):
    pass


class ConnectionFailed(SessionError):
    pass


class MountFailed(SessionError):
    pass


class AlreadyActive(SessionError):
    pass


class ToolNotInstalled(SessionError):
    pass


class ListingFailed(SessionError):
    pass


class TransferFailed(SessionError):
    pass
