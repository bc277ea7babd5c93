#!/usr/bin/env python3
"""Check that the configured qBittorrent Web UI is reachable and accepts our login."""

import asyncio
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from qbittorrent_client.qbittorrent.client import QBittorrentClient
from qbittorrent_client.qbittorrent.errors import QBittorrentError
from qbittorrent_client.utils.config import settings
from qbittorrent_client.utils.logger import logger


async def main():
    """Test qBittorrent connection."""
    logger.info(f"Testing qBittorrent connection to {settings.url}...")

    try:
        async with QBittorrentClient() as client:
            await client.login()

            logger.info(f"qBittorrent version: {await client.get_qbittorrent_version()}")
            logger.info(f"Web API version: {await client.get_api_version()}")

            torrents = await client.get_torrent_list()
            logger.info(f"Torrents: {len(torrents)}")

            await client.logout()

    except QBittorrentError as e:
        logger.error(f"Connection failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
