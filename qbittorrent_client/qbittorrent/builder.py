"""
Request construction for the qBittorrent Web API.

Builders are pure: they turn an Endpoint plus arguments into a PreparedCall
and never touch the network, so malformed input fails before any I/O.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .endpoints import Encoding, Endpoint
from .hashes import normalize
from .models import (
    AddTorrentFilesRequest,
    AddTorrentOptions,
    AddTorrentUrlsRequest,
    TorrentListFilter,
    TorrentLogSeverity,
)

FileField = Tuple[str, Tuple[str, bytes, str]]

TORRENT_CONTENT_TYPE = "application/octet-stream"

# Option attribute -> form field name, in the order they are sent
OPTION_FIELDS = (
    ("save_path", "savepath"),
    ("category", "category"),
    ("paused", "paused"),
    ("skip_checking", "skip_checking"),
    ("create_root_folder", "root_folder"),
    ("sequential_download", "sequentialDownload"),
    ("rename", "rename"),
    ("upload_limit", "upLimit"),
    ("download_limit", "dlLimit"),
)


@dataclass(frozen=True)
class PreparedCall:
    """Serialized request ready to be handed to httpx."""

    method: str
    path: str
    params: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, str] = field(default_factory=dict)
    files: List[FileField] = field(default_factory=list)


def _wire_value(value: Union[bool, int, str]) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def option_fields(options: AddTorrentOptions) -> Dict[str, str]:
    """
    Serialize add-torrent options; unset options are left out.

    Args:
        options: Either add-torrent variant

    Returns:
        Ordered form fields
    """
    fields = {}
    for attribute, name in OPTION_FIELDS:
        value = getattr(options, attribute)
        if value is not None:
            fields[name] = _wire_value(value)
    return fields


def _call(endpoint: Endpoint, arguments: Dict[str, str]) -> PreparedCall:
    """Place arguments according to the endpoint encoding."""
    if endpoint.encoding in (Encoding.FORM, Encoding.MULTIPART):
        return PreparedCall(endpoint.method, endpoint.path, data=arguments)
    return PreparedCall(endpoint.method, endpoint.path, params=arguments)


def build_plain(endpoint: Endpoint) -> PreparedCall:
    """Call without arguments (logout, version queries)."""
    return PreparedCall(endpoint.method, endpoint.path)


def build_login(endpoint: Endpoint, username: str, password: str) -> PreparedCall:
    return _call(endpoint, {"username": username, "password": password})


def build_identity_query(endpoint: Endpoint, torrent_hash: str) -> PreparedCall:
    """
    Build a per-torrent query.

    Args:
        endpoint: Resolved query endpoint
        torrent_hash: Torrent hash in any case

    Returns:
        PreparedCall with the hash in the path (legacy API) or as the
        ``hash`` parameter

    Raises:
        InvalidIdentityError: If torrent_hash is malformed
    """
    torrent_hash = normalize(torrent_hash)
    if endpoint.hash_in_path:
        return PreparedCall(endpoint.method, endpoint.path.format(hash=torrent_hash))
    return _call(endpoint, {"hash": torrent_hash})


def build_add_files(endpoint: Endpoint, request: AddTorrentFilesRequest) -> PreparedCall:
    """Multipart upload: one ``torrents`` part per file plus the set options."""
    files = [
        ("torrents", (upload.filename, upload.content, TORRENT_CONTENT_TYPE))
        for upload in request.files
    ]
    return PreparedCall(
        endpoint.method,
        endpoint.path,
        data=option_fields(request),
        files=files,
    )


def build_add_urls(endpoint: Endpoint, request: AddTorrentUrlsRequest) -> PreparedCall:
    """Form post: newline-joined ``urls`` plus the set options."""
    data = {"urls": "\n".join(request.urls)}
    data.update(option_fields(request))
    return _call(endpoint, data)


def build_torrent_list(
    endpoint: Endpoint,
    filter: Optional[TorrentListFilter] = None,
    category: Optional[str] = None,
    sort: Optional[str] = None,
    reverse: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> PreparedCall:
    arguments = {}
    if filter is not None:
        arguments["filter"] = TorrentListFilter(filter).value
    for name, value in (
        ("category", category),
        ("sort", sort),
        ("reverse", reverse),
        ("limit", limit),
        ("offset", offset),
    ):
        if value is not None:
            arguments[name] = _wire_value(value)
    return _call(endpoint, arguments)


def build_log(
    endpoint: Endpoint,
    severity: TorrentLogSeverity = TorrentLogSeverity.ALL,
    after_id: int = -1,
) -> PreparedCall:
    """Log query: one boolean per severity flag and the last known entry id."""
    severity = TorrentLogSeverity(severity)
    arguments = {
        "normal": _wire_value(bool(severity & TorrentLogSeverity.NORMAL)),
        "info": _wire_value(bool(severity & TorrentLogSeverity.INFO)),
        "warning": _wire_value(bool(severity & TorrentLogSeverity.WARNING)),
        "critical": _wire_value(bool(severity & TorrentLogSeverity.CRITICAL)),
        "last_known_id": str(after_id),
    }
    return _call(endpoint, arguments)
