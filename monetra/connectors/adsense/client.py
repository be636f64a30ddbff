"""Monetra — AdSense Management API Client.

Handles OAuth code exchange, retry logic and rate limiting against the
AdSense v2 REST API.
"""

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from monetra.config import settings
from monetra.core.logging import get_logger

logger = get_logger("adsense.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds

REPORT_METRICS = ("ESTIMATED_EARNINGS", "IMPRESSIONS", "CLICKS")


class AdSenseAPIError(Exception):
    """Raised when the AdSense or Google OAuth API returns an error."""

    def __init__(self, message: str, status_code: int = 0, error_code: str = ""):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class AdSenseClient:
    """Async HTTP client for the AdSense Management API.

    ``http`` may be a shared ``httpx.AsyncClient`` owned by the caller; when
    omitted the client creates and closes its own.
    """

    def __init__(
        self,
        access_token: str | None = None,
        http: Optional[httpx.AsyncClient] = None,
        base_url: str | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.access_token = access_token
        self.base_url = (base_url or settings.adsense_base_url).rstrip("/")
        self.retry_base_delay = retry_base_delay
        self._client = http
        self._owns_client = http is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=settings.adsense_timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        url: str,
        params: Any = None,
        json: Dict[str, Any] | None = None,
        data: Dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Make a request with retry + rate-limit handling."""
        headers = {}
        if authenticated:
            if not self.access_token:
                raise AdSenseAPIError("No AdSense access token", 401)
            headers["Authorization"] = f"Bearer {self.access_token}"

        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.request(
                    method, url, params=params, json=json, data=data, headers=headers
                )

                # Rate limited
                if resp.status_code == 429:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{MAX_RETRIES})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as e:
                body = (
                    e.response.json()
                    if e.response.headers.get("content-type", "").startswith(
                        "application/json"
                    )
                    else {}
                )
                error = body.get("error", {})
                if isinstance(error, dict):
                    error_msg = error.get("message", str(e))
                    error_code = str(error.get("status", ""))
                else:
                    # OAuth endpoints return {"error": "invalid_grant", ...}
                    error_msg = body.get("error_description", str(error))
                    error_code = str(error)

                if attempt < MAX_RETRIES and e.response.status_code >= 500:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue

                raise AdSenseAPIError(error_msg, e.response.status_code, error_code) from e

            except httpx.RequestError as e:
                if attempt < MAX_RETRIES:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise AdSenseAPIError(
                    f"Connection failed after {MAX_RETRIES} retries: {e}"
                ) from e

        raise AdSenseAPIError("Max retries exhausted")

    # ── OAuth ──

    async def exchange_code(self, auth_code: str) -> Dict[str, Any]:
        """Trade an OAuth authorization code for access/refresh tokens."""
        result = await self._request(
            "POST",
            settings.adsense_token_url,
            data={
                "code": auth_code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
            authenticated=False,
        )
        self.access_token = result.get("access_token")
        return result

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """Get a new access token from a stored refresh token."""
        result = await self._request(
            "POST",
            settings.adsense_token_url,
            data={
                "refresh_token": refresh_token,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "grant_type": "refresh_token",
            },
            authenticated=False,
        )
        self.access_token = result.get("access_token")
        return result

    # ── Accounts ──

    async def list_accounts(self) -> List[Dict[str, Any]]:
        result = await self._request("GET", f"{self.base_url}/accounts")
        return result.get("accounts", [])

    async def list_ad_clients(self, account_name: str) -> List[Dict[str, Any]]:
        result = await self._request("GET", f"{self.base_url}/{account_name}/adclients")
        return result.get("adClients", [])

    # ── Ad Units ──

    async def create_ad_unit(
        self, ad_client_name: str, display_name: str, ad_format: str
    ) -> Dict[str, Any]:
        """Create a content ad unit under an ad client."""
        return await self._request(
            "POST",
            f"{self.base_url}/{ad_client_name}/adunits",
            json={
                "displayName": display_name,
                "state": "ACTIVE",
                "contentAdsSettings": {"type": ad_format},
            },
        )

    # ── Reports ──

    async def generate_report(
        self, account_name: str, start: date, end: date
    ) -> Dict[str, Any]:
        """Daily earnings/impressions/clicks report for [start, end]."""
        params = [
            ("dateRange", "CUSTOM"),
            ("startDate.year", start.year),
            ("startDate.month", start.month),
            ("startDate.day", start.day),
            ("endDate.year", end.year),
            ("endDate.month", end.month),
            ("endDate.day", end.day),
            ("dimensions", "DATE"),
            ("orderBy", "+DATE"),
        ]
        params.extend(("metrics", m) for m in REPORT_METRICS)
        return await self._request(
            "GET", f"{self.base_url}/{account_name}/reports:generate", params=params
        )
