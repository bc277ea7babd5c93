"""qBittorrent Web API client with async httpx."""

from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Callable, List, Optional, Tuple, Union

import httpx
from pydantic import TypeAdapter

from . import decoder
from .builder import (
    PreparedCall,
    build_add_files,
    build_add_urls,
    build_identity_query,
    build_log,
    build_login,
    build_plain,
    build_torrent_list,
)
from .endpoints import LEGACY, WEB_API_V2, ApiVersion, Endpoint, Operation, resolve
from .errors import ApiError, TransportError, UnauthorizedError, UnexpectedResponseError
from .hashes import normalize
from .models import (
    AddTorrentFilesRequest,
    AddTorrentRequest,
    AddTorrentUrlsRequest,
    PieceState,
    TorrentContent,
    TorrentInfo,
    TorrentListFilter,
    TorrentLogEntry,
    TorrentLogSeverity,
    TorrentProperties,
    TorrentTracker,
    WebSeed,
)
from .session import Session, SessionManager
from ..utils.logger import logger
from ..utils.config import settings


def _cookie_jar() -> CookieJar:
    """Jar that stores nothing; the SID lives in the SessionManager only."""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class QBittorrentClient:
    """Async client for the qBittorrent Web API (legacy API and v2)."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_version: Union[str, ApiVersion, None] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize qBittorrent client.

        Args:
            url: Web UI address (uses settings if not provided)
            api_version: Pin the API version instead of probing the daemon
            timeout: Per-request timeout in seconds
            transport: Alternative httpx transport (mock or ASGI app)
        """
        self.url = (url or settings.url).rstrip("/") + "/"

        pinned = api_version or settings.api_version
        if isinstance(pinned, str):
            pinned = ApiVersion.parse(pinned)
        self._pinned_version: Optional[ApiVersion] = pinned

        self._sessions = SessionManager()
        self.client = httpx.AsyncClient(
            base_url=self.url,
            timeout=httpx.Timeout(timeout or settings.timeout),
            limits=httpx.Limits(max_connections=settings.max_connections),
            cookies=_cookie_jar(),
            transport=transport,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self._sessions.current is not None

    # Transport

    async def _send(self, call: PreparedCall, session: Optional[Session] = None) -> httpx.Response:
        """
        Send a prepared call, attaching the session cookie if given.

        Raises:
            TransportError: On connection failure or timeout
        """
        headers = {"Cookie": session.cookie_header} if session else None
        logger.debug(f"{call.method} {call.path}")

        try:
            return await self.client.request(
                call.method,
                call.path,
                params=call.params or None,
                data=call.data or None,
                files=call.files or None,
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.warning(f"qBittorrent request {call.method} {call.path} failed: {e!r}")
            raise TransportError(f"{call.method} {call.path}: {e}") from e

    async def _request(
        self, operation: Operation, build: Callable[[Endpoint], PreparedCall]
    ) -> Tuple[Endpoint, httpx.Response]:
        """
        Send a protected call with a snapshot of the current session.

        A 401/403 answer drops that session so later calls fail fast.
        """
        session = await self._sessions.ensure_authenticated()
        endpoint = resolve(operation, session.api_version)
        call = build(endpoint)

        response = await self._send(call, session)
        if response.status_code in (401, 403):
            self._sessions.invalidate(session)
        return endpoint, response

    async def _query(self, operation: Operation, torrent_hash: str, adapter: TypeAdapter):
        torrent_hash = normalize(torrent_hash)
        endpoint, response = await self._request(
            operation, lambda endpoint: build_identity_query(endpoint, torrent_hash)
        )
        return decoder.decode_json(response, endpoint, adapter)

    # Authentication

    async def _probe_version(self) -> Tuple[ApiVersion, bool]:
        """
        Find out which API generation the daemon speaks.

        Returns:
            (version, exact) where exact is False if only the generation is
            known and the precise version needs an authenticated request
        """
        if self._pinned_version is not None:
            return self._pinned_version, True

        endpoint = resolve(Operation.API_VERSION, WEB_API_V2)
        response = await self._send(build_plain(endpoint))

        if response.status_code == 403:
            return WEB_API_V2, False

        if response.status_code == 404:
            endpoint = resolve(Operation.API_VERSION, LEGACY)
            response = await self._send(build_plain(endpoint))
            number = decoder.decode_legacy_version(response, endpoint)
            return ApiVersion.legacy(number), True

        return ApiVersion.parse(decoder.decode_text(response, endpoint)), True

    async def login(self, username: Optional[str] = None, password: Optional[str] = None) -> None:
        """
        Log in and store the session.

        Args:
            username: Web UI user (uses settings if not provided)
            password: Web UI password (uses settings if not provided)

        Raises:
            UnauthorizedError: If the daemon rejects the credentials
        """
        username = settings.username if username is None else username
        password = settings.password if password is None else password

        async with self._sessions.lock:
            self._sessions.clear()

            version, exact = await self._probe_version()
            endpoint = resolve(Operation.LOGIN, version)
            response = await self._send(build_login(endpoint, username, password))

            if decoder.decode_text(response, endpoint) != "Ok.":
                logger.warning(f"qBittorrent rejected login for user {username}")
                raise UnauthorizedError(f"Login rejected for user {username!r}")

            sid = response.cookies.get("SID")
            if not sid:
                raise UnexpectedResponseError("Login succeeded without a SID cookie")

            session = Session(sid=sid, api_version=version)
            if not exact:
                session = Session(sid=sid, api_version=await self._fetch_api_version(session))

            self._sessions.establish(session)

        generation = "legacy API" if session.api_version.is_legacy else "Web API"
        logger.info(f"Logged in to {self.url} as {username} ({generation} {session.api_version})")

    async def _fetch_api_version(self, session: Session) -> ApiVersion:
        endpoint = resolve(Operation.API_VERSION, session.api_version)
        response = await self._send(build_plain(endpoint), session)
        return ApiVersion.parse(decoder.decode_text(response, endpoint))

    async def logout(self) -> None:
        """Invalidate the current session; a no-op when not logged in."""
        async with self._sessions.lock:
            session = self._sessions.current
            if session is None:
                logger.debug("Logout requested without a session")
                return

            try:
                endpoint = resolve(Operation.LOGOUT, session.api_version)
                response = await self._send(build_plain(endpoint), session)
                decoder.decode_text(response, endpoint)
            finally:
                self._sessions.clear()

        logger.info(f"Logged out from {self.url}")

    # Application

    async def get_api_version(self) -> ApiVersion:
        """API version negotiated for the current session."""
        session = await self._sessions.ensure_authenticated()
        return session.api_version

    async def get_qbittorrent_version(self) -> str:
        """Daemon version string, e.g. ``v4.6.2``."""
        endpoint, response = await self._request(Operation.APP_VERSION, build_plain)
        return decoder.decode_text(response, endpoint)

    async def get_log(
        self,
        severity: TorrentLogSeverity = TorrentLogSeverity.ALL,
        after_id: int = -1,
    ) -> List[TorrentLogEntry]:
        """
        Get daemon log entries.

        Args:
            severity: Severities to include
            after_id: Only entries with a greater id

        Raises:
            UnsupportedOperationError: On legacy API daemons
        """
        endpoint, response = await self._request(
            Operation.LOG, lambda endpoint: build_log(endpoint, severity, after_id)
        )
        return decoder.decode_json(response, endpoint, decoder.LOG)

    # Torrents

    async def get_torrent_list(
        self,
        filter: Optional[TorrentListFilter] = None,
        category: Optional[str] = None,
        sort: Optional[str] = None,
        reverse: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[TorrentInfo]:
        """List torrents, optionally filtered by state or category."""
        endpoint, response = await self._request(
            Operation.TORRENT_LIST,
            lambda endpoint: build_torrent_list(
                endpoint, filter, category, sort, reverse, limit, offset
            ),
        )
        return decoder.decode_json(response, endpoint, decoder.TORRENT_LIST)

    async def add_torrents(
        self, request: AddTorrentRequest
    ) -> None:
        """
        Add torrents from .torrent files or from URLs/magnet links.

        Args:
            request: AddTorrentFilesRequest or AddTorrentUrlsRequest

        Raises:
            ApiError: If the daemon refuses the torrents
        """
        if isinstance(request, AddTorrentFilesRequest):
            operation, count = Operation.ADD_TORRENT_FILES, len(request.files)
            build = lambda endpoint: build_add_files(endpoint, request)  # noqa: E731
        elif isinstance(request, AddTorrentUrlsRequest):
            operation, count = Operation.ADD_TORRENT_URLS, len(request.urls)
            build = lambda endpoint: build_add_urls(endpoint, request)  # noqa: E731
        else:
            raise TypeError(f"Unsupported add-torrent request: {type(request).__name__}")

        endpoint, response = await self._request(operation, build)
        if decoder.decode_text(response, endpoint) == "Fails.":
            logger.error(f"qBittorrent refused to add {count} torrent(s)")
            raise ApiError("Daemon refused to add torrents", response.status_code)

        logger.info(f"Added {count} torrent(s) via {request.kind}")

    async def get_torrent_properties(self, torrent_hash: str) -> Optional[TorrentProperties]:
        """
        Get general properties of a torrent.

        Returns:
            TorrentProperties, or None if the daemon does not know the hash
        """
        return await self._query(Operation.PROPERTIES, torrent_hash, decoder.PROPERTIES)

    async def get_torrent_contents(self, torrent_hash: str) -> Optional[List[TorrentContent]]:
        """Files of a torrent, or None if the hash is unknown."""
        return await self._query(Operation.CONTENTS, torrent_hash, decoder.CONTENTS)

    async def get_torrent_trackers(self, torrent_hash: str) -> Optional[List[TorrentTracker]]:
        """Trackers of a torrent, or None if the hash is unknown."""
        return await self._query(Operation.TRACKERS, torrent_hash, decoder.TRACKERS)

    async def get_torrent_web_seeds(self, torrent_hash: str) -> Optional[List[WebSeed]]:
        """Web seeds of a torrent ([] if it has none), or None if the hash is unknown."""
        return await self._query(Operation.WEB_SEEDS, torrent_hash, decoder.WEB_SEEDS)

    async def get_torrent_piece_states(self, torrent_hash: str) -> Optional[List[PieceState]]:
        """
        Download state of every piece.

        Returns:
            One PieceState per piece, or None if the hash is unknown

        Raises:
            UnexpectedResponseError: If the vector does not match the
                torrent's piece count
        """
        return await self._piece_vector(Operation.PIECE_STATES, torrent_hash, decoder.PIECE_STATES)

    async def get_torrent_piece_hashes(self, torrent_hash: str) -> Optional[List[str]]:
        """Lowercase SHA-1 hash of every piece, or None if the hash is unknown."""
        return await self._piece_vector(Operation.PIECE_HASHES, torrent_hash, decoder.PIECE_HASHES)

    async def _piece_vector(self, operation: Operation, torrent_hash: str, adapter: TypeAdapter):
        torrent_hash = normalize(torrent_hash)

        properties = await self.get_torrent_properties(torrent_hash)
        if properties is None:
            return None

        vector = await self._query(operation, torrent_hash, adapter)
        if vector is not None:
            decoder.check_piece_count(vector, properties.pieces_num, operation.value)
        return vector
