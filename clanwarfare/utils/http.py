from __future__ import annotations
from typing import Any, Optional
import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from ..config import SETTINGS, Settings

log = structlog.get_logger()


def _headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate, br",
        "Connection": "keep-alive",
    }


class UpstreamClient:
    """
    Read-only JSON client for the results API and the Bungie platform API.

    Only transport failures (connect/read errors, timeouts) are retried;
    HTTP error statuses and undecodable bodies raise straight away.
    """

    def __init__(self, settings: Settings = SETTINGS, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            timeout=settings.http_timeout_s,
            follow_redirects=True,
            headers=_headers(settings),
            transport=transport,
        )

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, headers: Optional[dict[str, str]] = None) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, self.settings.upstream_attempts)),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    log.info("upstream_retry", url=url, attempt=attempt.retry_state.attempt_number)
                r = await self._client.get(url, headers=headers)
        r.raise_for_status()
        return r.json()

    async def get_json(self, endpoint: str) -> Any:
        base = self.settings.api_base_url.rstrip("/")
        return await self._get_json(f"{base}/{endpoint.lstrip('/')}")

    async def get_bungie_json(self, path: str) -> Any:
        base = self.settings.bungie_api_base_url.rstrip("/")
        headers = {"X-API-Key": self.settings.bungie_api_key} if self.settings.bungie_api_key else None
        return await self._get_json(f"{base}/{path.lstrip('/')}", headers=headers)
