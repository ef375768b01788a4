# grid_download.py - fetch a single grid image by URL

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

import config
from utils import atomic_write_bytes


async def download_grid(url: str, dest_path: str, logger: Optional[logging.Logger] = None) -> bool:
    """Download ``url`` into ``dest_path``. Returns False on any failure."""
    log = logger or config.logger
    target = str(dest_path or "").strip()
    source = str(url or "").strip()
    if not target or not source:
        return False

    log.info("Downloading grid from %s to %s", source, target)
    timeout = aiohttp.ClientTimeout(total=config.DOWNLOAD_TIMEOUT_SECONDS)
    headers = {"User-Agent": config.DOWNLOAD_USER_AGENT}
    try:
        async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
            async with session.get(source) as resp:
                if int(resp.status) < 200 or int(resp.status) >= 300:
                    log.warning("Download of %s failed with HTTP %s.", source, resp.status)
                    return False
                data = await resp.read()
                if not data:
                    log.warning("Download of %s returned an empty body.", source)
                    return False
        await asyncio.to_thread(atomic_write_bytes, target, data)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
        log.warning("Download of %s failed with %s.", source, exc)
        return False

    log.info("Download of %s finished.", source)
    return True
