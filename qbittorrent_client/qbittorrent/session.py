"""Session state shared by concurrent calls of one client."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .endpoints import ApiVersion
from .errors import UnauthenticatedError
from ..utils.logger import logger


@dataclass(frozen=True)
class Session:
    """Authenticated session: the SID cookie and the negotiated API version."""

    sid: str = field(repr=False)
    api_version: ApiVersion
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def cookie_header(self) -> str:
        return f"SID={self.sid}"


class SessionManager:
    """
    Single-writer, multi-reader holder of the current Session.

    Writers (login/logout) hold ``lock`` for their whole exchange. Readers
    take it only to copy the current reference, so a request never observes
    a half-applied login; the Session itself is immutable and is replaced,
    never mutated.
    """

    def __init__(self):
        self.lock = asyncio.Lock()
        self._session: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._session

    async def ensure_authenticated(self) -> Session:
        """
        Snapshot the current session.

        Raises:
            UnauthenticatedError: If no session is established
        """
        async with self.lock:
            session = self._session
        if session is None:
            raise UnauthenticatedError("Not logged in")
        return session

    def establish(self, session: Session) -> None:
        """Install a new session. Caller must hold ``lock``."""
        self._session = session
        logger.info(f"Session established (API {session.api_version})")

    def clear(self) -> None:
        """Drop the session. Caller must hold ``lock``."""
        self._session = None

    def invalidate(self, session: Session) -> None:
        """
        Drop a session the daemon rejected.

        Only clears if it is still the current session, so a rejection of a
        stale credential does not discard a newer login.
        """
        if self._session is session:
            self._session = None
            logger.warning("Session rejected by daemon, cleared")
