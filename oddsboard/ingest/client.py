"""HTTP client for the scraper backend."""

import asyncio
import logging
import re
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from oddsboard.ingest.cancel import CancelToken
from oddsboard.ingest.errors import FetchCancelledError, MalformedInputError, NetworkError
from oddsboard.ingest.schema import ScrapeResponse

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_date_token(date_token: str) -> str:
    """Accept ``today``, ``tomorrow`` or ``YYYY-MM-DD``."""
    token = date_token.strip().lower()
    if token in ("today", "tomorrow") or _ISO_DATE.match(token):
        return token
    raise ValueError(f"Invalid schedule date: {date_token!r}")


class RaceApiClient:
    """Async client for the scrape endpoints.

    Every scrape call takes a :class:`CancelToken`; cancelling the token
    aborts the request in flight and the call raises
    :class:`FetchCancelledError`.
    """

    DEFAULT_HEADERS = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.DEFAULT_HEADERS,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, token: CancelToken) -> ScrapeResponse:
        token.raise_if_cancelled()
        logger.info(f"Requesting: POST {self.base_url}{path}")

        try:
            request = asyncio.ensure_future(self.client.post(path))
        except httpx.InvalidURL as e:
            logger.error(f"Invalid backend URL {self.base_url!r}: {e}")
            raise NetworkError(f"Invalid backend URL: {self.base_url}")
        abort = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({request, abort}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            abort.cancel()

        if request not in done:
            request.cancel()
            try:
                await request
            except (asyncio.CancelledError, httpx.HTTPError):
                pass
            logger.debug(f"Aborted POST {path} ({token.reason})")
            raise FetchCancelledError(f"POST {path} {token.reason}")

        try:
            response = request.result()
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from {path}: {e}")
            raise NetworkError(
                f"HTTP {e.response.status_code}: {path}",
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            logger.error(f"Request error for {path}: {e}")
            raise NetworkError(f"Request failed: {path}")
        except httpx.InvalidURL as e:
            logger.error(f"Invalid request URL for {path}: {e}")
            raise NetworkError(f"Invalid request URL: {path}")

        # A response that lands after cancellation is stale
        token.raise_if_cancelled()
        return self._parse_envelope(response, path)

    @staticmethod
    def _parse_envelope(response: httpx.Response, path: str) -> ScrapeResponse:
        try:
            payload: Any = response.json()
        except ValueError:
            raise MalformedInputError(f"Response from {path} is not JSON")
        if not isinstance(payload, dict):
            raise MalformedInputError(f"Response from {path} is not an object")
        try:
            return ScrapeResponse.model_validate(payload)
        except ValidationError:
            raise MalformedInputError(
                f"Invalid response format from {path}. Expected data as array"
            )

    async def scrape_all_races(self, token: CancelToken) -> ScrapeResponse:
        """Today's races with odds for every racetrack."""
        return await self._post("/api/scrape/all-races", token)

    async def scrape_upcoming(self, date_token: str, token: CancelToken) -> ScrapeResponse:
        """Scheduled races for ``today``, ``tomorrow`` or a ``YYYY-MM-DD`` date."""
        date_token = validate_date_token(date_token)
        return await self._post(f"/api/scrape/upcoming/{date_token}", token)

    async def scrape_winners(self, token: CancelToken) -> ScrapeResponse:
        """Results of today's completed races."""
        return await self._post("/api/scrape/winners", token)

    async def health(self) -> bool:
        """True when the backend answers its health check."""
        try:
            response = await self.client.get("/api/health", timeout=5.0)
            return response.is_success
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Backend health check failed: {e}")
            return False
