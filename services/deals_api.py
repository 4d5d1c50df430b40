import asyncio
import json
import aiohttp
from pydantic import ValidationError
from typing import Optional

from config import settings
from config.logger import logger
from core.errors import ApplicationError, DealsFinderError, ServerError, TransportError
from models.api import ExternalMeta, MonitorStats, RewriteResponse, SearchRequest, SearchResponse


class DealsAPI:
    """Client for the deals backend (search, metadata, AI rewrite, usage monitor)."""

    SEARCH_PATH = "/api/search"
    METADATA_PATH = "/api/fetch-metadata"
    REWRITE_PATH = "/api/rewrite"
    MONITOR_PATH = "/api/monitor/stats"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.API_BASE).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.REQUEST_TIMEOUT_SECONDS)

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Run one page of a keyword search.

        Returns the parsed response as sent by the backend, ``success=false``
        included. Raises TransportError / ServerError when no usable response
        came back and ApplicationError when the body does not parse.
        """
        payload = request.model_dump(by_alias=True)
        logger.debug(f"📤 Sending payload: {payload}")

        data = await self._request("POST", self.SEARCH_PATH, payload)
        try:
            return SearchResponse.model_validate(data)
        except ValidationError as e:
            raise ApplicationError(f"Malformed search response ({e.error_count()} invalid fields)") from e

    async def fetch_metadata(self, url: str) -> ExternalMeta:
        """Title/description/image for a non-catalog URL. Any failure yields empty metadata."""
        try:
            data = await self._request("POST", self.METADATA_PATH, {"url": url})
            meta = ExternalMeta.model_validate(data)
        except (DealsFinderError, ValidationError) as e:
            logger.warning(f"⚠️ Metadata fetch failed for {url}: {e}")
            return ExternalMeta()

        if not meta.success:
            return ExternalMeta()
        return meta

    async def rewrite(self, text: str, model: Optional[str] = None) -> RewriteResponse:
        payload = {"text": text}
        if model:
            payload["model"] = model

        data = await self._request("POST", self.REWRITE_PATH, payload)
        try:
            return RewriteResponse.model_validate(data)
        except ValidationError as e:
            raise ApplicationError(f"Malformed rewrite response ({e.error_count()} invalid fields)") from e

    async def monitor_stats(self) -> MonitorStats:
        data = await self._request("GET", self.MONITOR_PATH)
        try:
            return MonitorStats.model_validate(data)
        except ValidationError as e:
            raise ApplicationError(f"Malformed monitor response ({e.error_count()} invalid fields)") from e

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, json=payload) as response:
                    text = await response.text()
                    data = _parse_json(text)

                    if response.status >= 400:
                        message = _error_message(data) or text.strip()[:200] or response.reason or "Unknown error from server"
                        logger.error(f"❌ Backend error {response.status} on {path}: {message}")
                        raise ServerError(response.status, message)

                    if not isinstance(data, dict):
                        raise ApplicationError(f"Unexpected response from {path}")
                    return data
        except asyncio.TimeoutError as e:
            raise TransportError(f"request to {path} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e


def _parse_json(text: str):
    try:
        return json.loads(text)
    except ValueError:
        return None


def _error_message(data) -> Optional[str]:
    if isinstance(data, dict):
        return data.get("error") or data.get("message")
    return None
