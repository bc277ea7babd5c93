"""qBittorrent Web API request and response models."""

from datetime import datetime
from enum import Enum, IntEnum, IntFlag
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from .hashes import normalize


def _unknown_to_none(value):
    """The daemon reports unknown timestamps and counters as -1."""
    if isinstance(value, (int, float)) and value < 0:
        return None
    return value


# SHA-1 piece hash, lowercased
PieceHash = Annotated[str, AfterValidator(normalize)]


class PieceState(IntEnum):
    """Download state of a single piece."""

    NOT_DOWNLOADED = 0
    DOWNLOADING = 1
    DOWNLOADED = 2


class TrackerStatus(IntEnum):
    """Tracker announce status."""

    DISABLED = 0
    NOT_CONTACTED = 1
    WORKING = 2
    UPDATING = 3
    NOT_WORKING = 4


# Legacy API reports tracker status as display text
_LEGACY_TRACKER_STATUS = {
    "disabled": TrackerStatus.DISABLED,
    "not contacted yet": TrackerStatus.NOT_CONTACTED,
    "working": TrackerStatus.WORKING,
    "updating...": TrackerStatus.UPDATING,
    "not working": TrackerStatus.NOT_WORKING,
}


class TorrentLogSeverity(IntFlag):
    """Severity flags of daemon log entries."""

    NORMAL = 1
    INFO = 2
    WARNING = 4
    CRITICAL = 8
    ALL = NORMAL | INFO | WARNING | CRITICAL


class TorrentListFilter(str, Enum):
    """Torrent list filter accepted by the daemon."""

    ALL = "all"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    PAUSED = "paused"
    ACTIVE = "active"
    INACTIVE = "inactive"
    RESUMED = "resumed"
    STALLED = "stalled"
    ERRORED = "errored"


# Response models


class TorrentInfo(BaseModel):
    """Entry of the torrent list."""

    hash: str
    name: str
    size: int
    progress: float
    dlspeed: int = 0
    upspeed: int = 0
    priority: Optional[int] = None
    num_seeds: Optional[int] = None
    num_leechs: Optional[int] = None
    ratio: Optional[float] = None
    eta: Optional[int] = None
    state: str
    category: Optional[str] = None
    save_path: Optional[str] = None
    seq_dl: Optional[bool] = None
    f_l_piece_prio: Optional[bool] = None
    force_start: Optional[bool] = None
    super_seeding: Optional[bool] = None
    added_on: Optional[datetime] = None
    completion_on: Optional[datetime] = None

    @field_validator("hash")
    @classmethod
    def _normalize_hash(cls, value: str) -> str:
        return normalize(value)

    @field_validator("added_on", "completion_on", mode="before")
    @classmethod
    def _unknown_dates(cls, value):
        return _unknown_to_none(value)


class TorrentProperties(BaseModel):
    """General properties of a torrent."""

    save_path: Optional[str] = None
    creation_date: Optional[datetime] = None
    piece_size: Optional[int] = None
    comment: Optional[str] = None
    created_by: Optional[str] = None
    total_size: Optional[int] = None
    total_wasted: Optional[int] = None
    total_uploaded: Optional[int] = None
    total_uploaded_session: Optional[int] = None
    total_downloaded: Optional[int] = None
    total_downloaded_session: Optional[int] = None
    up_limit: Optional[int] = None
    dl_limit: Optional[int] = None
    up_speed: Optional[int] = None
    up_speed_avg: Optional[int] = None
    dl_speed: Optional[int] = None
    dl_speed_avg: Optional[int] = None
    time_elapsed: Optional[int] = None
    seeding_time: Optional[int] = None
    eta: Optional[int] = None
    nb_connections: Optional[int] = None
    nb_connections_limit: Optional[int] = None
    share_ratio: Optional[float] = None
    peers: Optional[int] = None
    peers_total: Optional[int] = None
    seeds: Optional[int] = None
    seeds_total: Optional[int] = None
    pieces_have: Optional[int] = None
    pieces_num: Optional[int] = None
    reannounce: Optional[int] = None
    addition_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    @field_validator(
        "creation_date",
        "addition_date",
        "completion_date",
        "last_seen",
        "up_limit",
        "dl_limit",
        "piece_size",
        "eta",
        mode="before",
    )
    @classmethod
    def _unknown_values(cls, value):
        return _unknown_to_none(value)


class TorrentContent(BaseModel):
    """File inside a torrent."""

    index: Optional[int] = None
    name: str
    size: int
    progress: float = 0.0
    priority: int = 1
    is_seed: Optional[bool] = None
    piece_range: Optional[List[int]] = None
    availability: Optional[float] = None


class TorrentTracker(BaseModel):
    """Tracker of a torrent."""

    url: str
    status: TrackerStatus
    tier: Optional[int] = None
    num_peers: Optional[int] = None
    num_seeds: Optional[int] = None
    num_leeches: Optional[int] = None
    num_downloaded: Optional[int] = None
    msg: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, value):
        if isinstance(value, str) and value.strip().lower() in _LEGACY_TRACKER_STATUS:
            return _LEGACY_TRACKER_STATUS[value.strip().lower()]
        return value

    @field_validator("tier", "num_peers", "num_seeds", "num_leeches", "num_downloaded", mode="before")
    @classmethod
    def _unknown_counters(cls, value):
        if value == "":
            return None
        return _unknown_to_none(value)


class WebSeed(BaseModel):
    """HTTP seed of a torrent."""

    url: str


class TorrentLogEntry(BaseModel):
    """Daemon log entry."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    message: str
    timestamp: datetime
    severity: TorrentLogSeverity = Field(alias="type")


# Add-torrent requests


class TorrentFileUpload(BaseModel):
    """A .torrent file sent as a multipart part."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1)
    content: bytes


class AddTorrentOptions(BaseModel):
    """Options shared by both add-torrent variants; None means "not sent"."""

    model_config = ConfigDict(frozen=True)

    paused: Optional[bool] = None
    save_path: Optional[str] = None
    category: Optional[str] = None
    skip_checking: Optional[bool] = None
    sequential_download: Optional[bool] = None
    create_root_folder: Optional[bool] = None
    rename: Optional[str] = None
    upload_limit: Optional[int] = Field(default=None, ge=0, description="Bytes/s")
    download_limit: Optional[int] = Field(default=None, ge=0, description="Bytes/s")


class AddTorrentFilesRequest(AddTorrentOptions):
    """Add torrents by uploading .torrent files."""

    kind: Literal["files"] = "files"
    files: List[TorrentFileUpload] = Field(..., min_length=1)

    @classmethod
    def from_paths(cls, *paths: Union[str, Path], **options) -> "AddTorrentFilesRequest":
        """
        Build a request from .torrent files on disk.

        Args:
            *paths: Paths of .torrent files
            **options: Any AddTorrentOptions field

        Returns:
            AddTorrentFilesRequest with one upload per path
        """
        files = [
            TorrentFileUpload(filename=Path(path).name, content=Path(path).read_bytes())
            for path in paths
        ]
        return cls(files=files, **options)


class AddTorrentUrlsRequest(AddTorrentOptions):
    """Add torrents from HTTP(S) URLs or magnet links."""

    kind: Literal["urls"] = "urls"
    urls: List[str] = Field(..., min_length=1)

    @field_validator("urls")
    @classmethod
    def _single_line_urls(cls, urls: List[str]) -> List[str]:
        # URLs travel newline-joined in one field
        cleaned = [url.strip() for url in urls]
        for url in cleaned:
            if not url or "\n" in url or "\r" in url:
                raise ValueError(f"Invalid torrent URL: {url!r}")
        return cleaned


AddTorrentRequest = Annotated[
    Union[AddTorrentFilesRequest, AddTorrentUrlsRequest],
    Field(discriminator="kind"),
]
