"""
Response decoding for the qBittorrent Web API.

Every response ends up as one of three outcomes: a typed value, ``None`` when
the daemon does not know the requested torrent, or a raised QBittorrentError.
Absence is only recognised on endpoints that declare it, using the signal
that API generation actually emits.
"""

from typing import List, Optional, Sized, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .endpoints import Absence, Endpoint
from .errors import (
    ApiError,
    UnauthenticatedError,
    UnauthorizedError,
    UnexpectedResponseError,
)
from .models import (
    PieceHash,
    PieceState,
    TorrentContent,
    TorrentInfo,
    TorrentLogEntry,
    TorrentProperties,
    TorrentTracker,
    WebSeed,
)

T = TypeVar("T")

PROPERTIES = TypeAdapter(TorrentProperties)
CONTENTS = TypeAdapter(List[TorrentContent])
TRACKERS = TypeAdapter(List[TorrentTracker])
WEB_SEEDS = TypeAdapter(List[WebSeed])
PIECE_STATES = TypeAdapter(List[PieceState])
PIECE_HASHES = TypeAdapter(List[PieceHash])
TORRENT_LIST = TypeAdapter(List[TorrentInfo])
LOG = TypeAdapter(List[TorrentLogEntry])


def is_absent(response: httpx.Response, endpoint: Endpoint) -> bool:
    """
    Classify a response by status.

    Args:
        response: Daemon response
        endpoint: Endpoint the request was sent to

    Returns:
        True if the response is the endpoint's "unknown torrent" signal,
        False if the body should be decoded

    Raises:
        UnauthenticatedError: On 401
        UnauthorizedError: On 403
        ApiError: On any other non-2xx status
    """
    status = response.status_code
    if status == 401:
        raise UnauthenticatedError(f"Session required for {endpoint.path}")
    if status == 403:
        raise UnauthorizedError(f"Session rejected for {endpoint.path}")

    if status == 404 and endpoint.absence is Absence.NOT_FOUND:
        return True

    if not response.is_success:
        detail = response.text.strip() or response.reason_phrase
        raise ApiError(f"{endpoint.method} {endpoint.path} failed with {status}: {detail}", status)

    if endpoint.absence is Absence.EMPTY_BODY and not response.content.strip():
        return True

    return False


def decode_json(response: httpx.Response, endpoint: Endpoint, adapter: TypeAdapter[T]) -> Optional[T]:
    """
    Decode a JSON body into the adapter's type.

    Returns:
        Parsed value, or None if the torrent is unknown

    Raises:
        UnexpectedResponseError: If the body does not match the expected shape
    """
    if is_absent(response, endpoint):
        return None

    try:
        return adapter.validate_json(response.content)
    except ValidationError as e:
        raise UnexpectedResponseError(
            f"Unexpected response from {endpoint.path}: {e.error_count()} error(s), "
            f"first: {e.errors()[0]['msg']}"
        ) from e


def decode_text(response: httpx.Response, endpoint: Endpoint) -> str:
    """Decode a plain text body (versions, ``Ok.``/``Fails.``)."""
    is_absent(response, endpoint)
    return response.text.strip()


def decode_legacy_version(response: httpx.Response, endpoint: Endpoint) -> int:
    """Decode the integer API version of a pre-4.1 daemon."""
    text = decode_text(response, endpoint)
    try:
        return int(text)
    except ValueError as e:
        raise UnexpectedResponseError(f"Invalid legacy API version: {text!r}") from e


def check_piece_count(vector: Sized, declared: Optional[int], what: str) -> None:
    """
    Ensure a per-piece vector covers exactly the declared piece count.

    The check is skipped while the daemon has no metadata (count unknown).

    Raises:
        UnexpectedResponseError: On a length mismatch
    """
    if declared is None or declared < 0:
        return
    if len(vector) != declared:
        raise UnexpectedResponseError(
            f"Torrent declares {declared} pieces but {what} has {len(vector)} entries"
        )
