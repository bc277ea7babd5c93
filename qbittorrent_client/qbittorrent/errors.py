"""Typed failures raised by the qBittorrent client."""

from typing import Optional


class QBittorrentError(Exception):
    """Base class for every client failure."""


class AuthenticationError(QBittorrentError):
    """The daemon did not accept (or was never given) a session."""


class UnauthenticatedError(AuthenticationError):
    """No session is established, or the daemon answered 401."""


class UnauthorizedError(AuthenticationError):
    """Login was rejected, or the daemon answered 403 for the session."""


class InvalidIdentityError(QBittorrentError, ValueError):
    """A torrent hash is not 40 hexadecimal characters."""

    def __init__(self, value: object):
        super().__init__(f"Invalid torrent hash: {value!r}")
        self.value = value


class UnsupportedOperationError(QBittorrentError):
    """No endpoint is known for an operation at the negotiated API version."""


class TransportError(QBittorrentError):
    """Connection or timeout failure below HTTP."""


class UnexpectedResponseError(QBittorrentError):
    """A successful response whose body does not have the expected shape."""


class ApiError(QBittorrentError):
    """Any other non-success answer from the daemon."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
