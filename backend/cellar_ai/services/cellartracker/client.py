"""HTTP client for CellarTracker's inventory export and public wine pages."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from cellar_ai.config import config

from .parsing import is_inventory_csv, looks_like_html, parse_inventory_csv

logger = logging.getLogger(__name__)


class CellarTrackerError(Exception):
    """Base exception for CellarTracker access failures."""

    pass


class InvalidCredentialsError(CellarTrackerError):
    """CellarTracker refused the username/password."""

    pass


class CellarTrackerUnavailableError(CellarTrackerError):
    """CellarTracker could not be reached or returned a server error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CellarTrackerClient:
    """Fetches inventory exports and wine/notes pages.

    Transport errors (connection drops, timeouts) are retried with jittered
    exponential backoff; HTTP error statuses are not.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_initial_wait: float = 0.5,
    ):
        ct_config = config.get_cellartracker_config()
        self.base_url = (base_url or ct_config["base_url"]).rstrip("/")
        self.timeout_seconds = timeout_seconds or ct_config["timeout_seconds"]
        self.retry_attempts = retry_attempts or ct_config["retry_attempts"]
        self.user_agent = user_agent or ct_config["user_agent"]
        self.retry_initial_wait = retry_initial_wait
        self._transport = transport

    def wine_page_url(self, i_wine: str) -> str:
        return f"{self.base_url}/wine.asp?iWine={i_wine}"

    def notes_page_url(self, i_wine: str) -> str:
        return f"{self.base_url}/notes.asp?iWine={i_wine}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            headers={
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,text/csv;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
            follow_redirects=True,
            transport=self._transport,
        )

    async def _get(
        self,
        path: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                wait=wait_exponential_jitter(initial=self.retry_initial_wait, max=5),
                stop=stop_after_attempt(self.retry_attempts),
                reraise=True,
            ):
                with attempt:
                    async with self._client() as client:
                        return await client.get(path, params=params, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"CellarTracker request to {path} failed: {e!r}")
            raise CellarTrackerUnavailableError(f"Could not reach CellarTracker: {e}") from e

    async def fetch_inventory(self, username: str, password: str) -> List[Dict[str, Any]]:
        """Download and parse the user's inventory export.

        Raises:
            InvalidCredentialsError: The login was rejected
            CellarTrackerUnavailableError: Network failure or server error
        """
        response = await self._get(
            "/xlquery.asp",
            params={
                "User": username,
                "Password": password,
                "Format": "csv",
                "Table": "Inventory",
                "Location": "1",
            },
        )

        if response.status_code >= 500:
            raise CellarTrackerUnavailableError(
                f"CellarTracker returned HTTP {response.status_code}", response.status_code
            )
        if response.status_code >= 400:
            raise InvalidCredentialsError(f"CellarTracker returned HTTP {response.status_code}")

        body = response.text
        if looks_like_html(body) or "not logged into cellartracker" in body.lower():
            raise InvalidCredentialsError("Invalid CellarTracker credentials")
        if not is_inventory_csv(body):
            raise InvalidCredentialsError("CellarTracker did not return an inventory export")

        return parse_inventory_csv(body)

    async def _fetch_page(self, path: str, i_wine: str, referer: Optional[str] = None) -> Optional[str]:
        headers = {"Referer": referer} if referer else None
        response = await self._get(path, params={"iWine": i_wine}, headers=headers)
        if response.status_code != 200:
            logger.warning(f"HTTP {response.status_code} fetching {path} for iWine {i_wine}")
            return None
        return response.text

    async def fetch_wine_page(self, i_wine: str) -> Optional[str]:
        """HTML of the wine page, or None on a non-200 response."""
        return await self._fetch_page("/wine.asp", i_wine)

    async def fetch_notes_page(self, i_wine: str) -> Optional[str]:
        """HTML of the community notes page, or None on a non-200 response."""
        return await self._fetch_page("/notes.asp", i_wine, referer=self.wine_page_url(i_wine))


def get_cellartracker_client() -> CellarTrackerClient:
    """Factory function to get a configured CellarTracker client."""
    return CellarTrackerClient()
