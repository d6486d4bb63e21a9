from __future__ import annotations
import asyncio
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import structlog

from ..config import SETTINGS, Settings
from ..errors import CacheMiss
from ..utils.http import UpstreamClient

log = structlog.get_logger()


class CacheGateway:
    """
    One JSON file per upstream endpoint under data_dir, holding the last
    successfully fetched payload verbatim ("Clan/GetAllClans" ->
    data/Clan/GetAllClans.json).
    """

    def __init__(self, client: UpstreamClient, settings: Settings = SETTINGS):
        self.client = client
        self.data_dir = Path(settings.data_dir)

    def path_for(self, endpoint: str) -> Path:
        return self.data_dir / f"{endpoint.strip('/')}.json"

    def _read(self, endpoint: str) -> Any:
        path = self.path_for(endpoint)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise CacheMiss(endpoint, str(path)) from None

    def _write(self, endpoint: str, data: Any) -> None:
        path = self.path_for(endpoint)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def read(self, endpoint: str) -> Any:
        """Cached payload for endpoint; raises CacheMiss when there is none."""
        return await asyncio.to_thread(self._read, endpoint)

    async def store(self, endpoint: str, data: Any) -> None:
        await asyncio.to_thread(self._write, endpoint, data)

    async def refresh(self, endpoint: str) -> Any:
        """Fetch endpoint live, overwrite its cache entry and return the payload."""
        data = await self.client.get_json(endpoint)
        await self.store(endpoint, data)
        return data

    async def load_or_refresh(self, endpoint: str, force_refresh: bool) -> Any:
        """Refresh when forced, else read the cache and refresh only on a miss."""
        if force_refresh:
            log.debug("fetching_from_api", endpoint=endpoint)
            return await self.refresh(endpoint)
        try:
            data = await self.read(endpoint)
        except CacheMiss:
            log.info("cache_miss_updating_from_api", endpoint=endpoint)
            return await self.refresh(endpoint)
        log.debug("restored_from_cache", endpoint=endpoint)
        return data


def clear_cache(data_dir: Path) -> int:
    """Delete every cache entry; returns how many files were removed."""
    data_dir = Path(data_dir)
    if not data_dir.exists():
        return 0
    n = sum(1 for _ in data_dir.rglob("*.json"))
    shutil.rmtree(data_dir)
    return n
