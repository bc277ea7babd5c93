"""
Endpoint resolution for the qBittorrent Web API.

qBittorrent 4.1 replaced the legacy API (``/query/...``, ``/command/...``)
with Web API v2 (``/api/v2/...``). Each operation keeps an ordered table of
version lower bounds so the shape used for a given daemon is a plain lookup.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .errors import UnexpectedResponseError, UnsupportedOperationError


@dataclass(frozen=True, order=True)
class ApiVersion:
    """Web API version advertised by the daemon."""

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "ApiVersion":
        """
        Parse a dotted version string such as ``2.8.3`` or ``v2.2``.

        Raises:
            UnexpectedResponseError: If text is not a version
        """
        match = re.fullmatch(r"v?(\d+)(?:\.(\d+))?(?:\.(\d+))?", text.strip())
        if not match:
            raise UnexpectedResponseError(f"Invalid API version: {text!r}")
        major, minor, patch = (int(part) if part else 0 for part in match.groups())
        return cls(major, minor, patch)

    @classmethod
    def legacy(cls, number: int) -> "ApiVersion":
        """Map the integer reported by a pre-4.1 daemon to ``1.<number>.0``."""
        return cls(1, number, 0)

    @property
    def is_legacy(self) -> bool:
        return self.major < 2

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


LEGACY = ApiVersion(1, 2)
WEB_API_V2 = ApiVersion(2, 0)


class Operation(str, Enum):
    """Logical operations exposed by the client."""

    LOGIN = "login"
    LOGOUT = "logout"
    API_VERSION = "api_version"
    APP_VERSION = "app_version"
    TORRENT_LIST = "torrent_list"
    ADD_TORRENT_FILES = "add_torrent_files"
    ADD_TORRENT_URLS = "add_torrent_urls"
    PROPERTIES = "properties"
    CONTENTS = "contents"
    TRACKERS = "trackers"
    WEB_SEEDS = "web_seeds"
    PIECE_STATES = "piece_states"
    PIECE_HASHES = "piece_hashes"
    LOG = "log"


class Encoding(str, Enum):
    """How request arguments travel."""

    NONE = "none"
    QUERY = "query"
    FORM = "form"
    MULTIPART = "multipart"


class Absence(str, Enum):
    """How the daemon signals an unknown torrent hash."""

    NONE = "none"
    EMPTY_BODY = "empty_body"  # legacy API: 200 with no content
    NOT_FOUND = "not_found"  # Web API v2: 404


@dataclass(frozen=True)
class Endpoint:
    """Concrete request shape for one operation."""

    path: str
    method: str = "GET"
    encoding: Encoding = Encoding.NONE
    absence: Absence = Absence.NONE

    @property
    def hash_in_path(self) -> bool:
        return "{hash}" in self.path


def _legacy_query(name: str) -> Endpoint:
    return Endpoint(f"query/{name}/{{hash}}", absence=Absence.EMPTY_BODY)


def _v2_query(name: str) -> Endpoint:
    return Endpoint(f"api/v2/torrents/{name}", encoding=Encoding.QUERY, absence=Absence.NOT_FOUND)


# Rows are ascending by lower bound; a row applies up to the next one.
ENDPOINTS: Dict[Operation, List[Tuple[ApiVersion, Endpoint]]] = {
    Operation.LOGIN: [
        (LEGACY, Endpoint("login", "POST", Encoding.FORM)),
        (WEB_API_V2, Endpoint("api/v2/auth/login", "POST", Encoding.FORM)),
    ],
    Operation.LOGOUT: [
        (LEGACY, Endpoint("logout", "POST")),
        (WEB_API_V2, Endpoint("api/v2/auth/logout", "POST")),
    ],
    Operation.API_VERSION: [
        (LEGACY, Endpoint("version/api")),
        (WEB_API_V2, Endpoint("api/v2/app/webapiVersion")),
    ],
    Operation.APP_VERSION: [
        (LEGACY, Endpoint("version/qbittorrent")),
        (WEB_API_V2, Endpoint("api/v2/app/version")),
    ],
    Operation.TORRENT_LIST: [
        (LEGACY, Endpoint("query/torrents", encoding=Encoding.QUERY)),
        (WEB_API_V2, Endpoint("api/v2/torrents/info", encoding=Encoding.QUERY)),
    ],
    Operation.ADD_TORRENT_FILES: [
        (LEGACY, Endpoint("command/upload", "POST", Encoding.MULTIPART)),
        (WEB_API_V2, Endpoint("api/v2/torrents/add", "POST", Encoding.MULTIPART)),
    ],
    Operation.ADD_TORRENT_URLS: [
        (LEGACY, Endpoint("command/download", "POST", Encoding.FORM)),
        (WEB_API_V2, Endpoint("api/v2/torrents/add", "POST", Encoding.FORM)),
    ],
    Operation.PROPERTIES: [
        (LEGACY, _legacy_query("propertiesGeneral")),
        (WEB_API_V2, _v2_query("properties")),
    ],
    Operation.CONTENTS: [
        (LEGACY, _legacy_query("propertiesFiles")),
        (WEB_API_V2, _v2_query("files")),
    ],
    Operation.TRACKERS: [
        (LEGACY, _legacy_query("propertiesTrackers")),
        (WEB_API_V2, _v2_query("trackers")),
    ],
    Operation.WEB_SEEDS: [
        (LEGACY, _legacy_query("propertiesWebSeeds")),
        (WEB_API_V2, _v2_query("webseeds")),
    ],
    Operation.PIECE_STATES: [
        (LEGACY, _legacy_query("getPieceStates")),
        (WEB_API_V2, _v2_query("pieceStates")),
    ],
    Operation.PIECE_HASHES: [
        (LEGACY, _legacy_query("getPieceHashes")),
        (WEB_API_V2, _v2_query("pieceHashes")),
    ],
    Operation.LOG: [
        (WEB_API_V2, Endpoint("api/v2/log/main", encoding=Encoding.QUERY)),
    ],
}


def resolve(operation: Operation, version: ApiVersion) -> Endpoint:
    """
    Pick the endpoint for an operation at a given API version.

    Args:
        operation: Logical operation
        version: Negotiated API version

    Returns:
        Endpoint of the highest row whose lower bound is <= version

    Raises:
        UnsupportedOperationError: If no row applies
    """
    selected = None
    for lower_bound, endpoint in ENDPOINTS.get(operation, []):
        if lower_bound <= version:
            selected = endpoint
        else:
            break

    if selected is None:
        raise UnsupportedOperationError(
            f"Operation {operation.value!r} is not supported by API version {version}"
        )
    return selected
