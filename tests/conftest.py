"""Shared fixtures: generated .torrent files and a fake daemon behind ASGI."""

import os
from datetime import datetime
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
import torf

from qbittorrent_client.qbittorrent.client import QBittorrentClient
from tests.fake_daemon import FakeDaemon

TRACKERS = [
    ["http://tracker.example.org:6969/announce"],
    ["udp://tracker.example.net:1337/announce"],
]


def make_torrent(root: Path, name: str, sizes: dict) -> Path:
    """
    Create content on disk and a .torrent describing it.

    Args:
        root: Directory to write into
        name: Torrent name
        sizes: Relative file path -> size in bytes; a single "" key makes a
            single-file torrent

    Returns:
        Path of the written .torrent file
    """
    content = root / "content" / name
    if list(sizes) == [""]:
        content.parent.mkdir(parents=True, exist_ok=True)
        content.write_bytes(os.urandom(sizes[""]))
    else:
        for relative, size in sizes.items():
            target = content / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(os.urandom(size))

    torrent = torf.Torrent(
        path=content,
        trackers=TRACKERS,
        comment=f"{name} test torrent",
        created_by="qbittorrent-client tests",
        creation_date=datetime(2024, 1, 1, 12, 0, 0),
    )
    torrent.piece_size = 16384
    torrent.generate()

    path = root / f"{name}.torrent"
    torrent.write(path)
    return path


@pytest.fixture
def single_file_torrent(tmp_path) -> Path:
    return make_torrent(tmp_path, "ubuntu-single.iso", {"": 100_000})


@pytest.fixture
def multi_file_torrent(tmp_path) -> Path:
    return make_torrent(
        tmp_path,
        "ubuntu-pack",
        {"disc1/ubuntu.iso": 40_000, "disc2/ubuntu.iso": 50_000, "README.txt": 1_000},
    )


@pytest.fixture
def daemon() -> FakeDaemon:
    return FakeDaemon()


@pytest.fixture
def legacy_daemon() -> FakeDaemon:
    return FakeDaemon(legacy=True)


def client_for(daemon: FakeDaemon) -> QBittorrentClient:
    return QBittorrentClient(
        url="http://testserver",
        transport=httpx.ASGITransport(app=daemon.app),
    )


@pytest_asyncio.fixture
async def client(daemon):
    async with client_for(daemon) as client:
        yield client


@pytest_asyncio.fixture
async def legacy_client(legacy_daemon):
    async with client_for(legacy_daemon) as client:
        yield client
