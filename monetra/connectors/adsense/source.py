"""Monetra — Ad-Revenue Source Adapter.

Answers "revenue for this connected project over [start, end]". Real numbers
come from the AdSense reporting API; when the project has no stored tokens or
the API fails, the adapter falls back to a synthetic series so the dashboard
always has something to show.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

import httpx

from monetra.connectors.adsense.client import AdSenseAPIError, AdSenseClient
from monetra.connectors.adsense.transformer import build_report, transform_report
from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource
from monetra.models.revenue_models import (
    AdSenseAccount,
    AdSenseTokens,
    AdUnit,
    Connected,
    DailyRevenuePoint,
    RevenueReport,
)

logger = get_logger("adsense.source")

# Our ad unit type → AdSense contentAdsSettings.type
AD_UNIT_FORMATS = {
    "display": "DISPLAY",
    "text": "DISPLAY",
    "link": "IN_FEED",
}

ClientFactory = Callable[[Optional[str]], AdSenseClient]


def account_resource(account_id: str) -> str:
    """``pub-123`` → ``accounts/pub-123`` (already-qualified names pass through)."""
    return account_id if account_id.startswith("accounts/") else f"accounts/{account_id}"


def publisher_id_of(account_id: str) -> str:
    return account_id.rsplit("/", 1)[-1]


def _tokens_from(
    token_data: dict, now: datetime, fallback_refresh_token: Optional[str] = None
) -> AdSenseTokens:
    """OAuth token response → stored tokens. Google omits the refresh token on refresh."""
    expires_in = token_data.get("expires_in")
    return AdSenseTokens(
        access_token=token_data["access_token"],
        refresh_token=token_data.get("refresh_token") or fallback_refresh_token,
        expires_at=now + timedelta(seconds=int(expires_in)) if expires_in else None,
    )


def render_ad_code(publisher_id: str, ad_unit: AdUnit) -> str:
    """Embeddable AdSense snippet for one ad unit."""
    client = f"ca-{publisher_id}" if not publisher_id.startswith("ca-") else publisher_id
    if ad_unit.size == "responsive":
        sizing = 'data-ad-format="auto"\n     data-full-width-responsive="true"'
    else:
        width, _, height = ad_unit.size.partition("x")
        sizing = f'style="display:inline-block;width:{width}px;height:{height}px"'
    return (
        f'<script async src="https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js'
        f'?client={client}" crossorigin="anonymous"></script>\n'
        f"<!-- {ad_unit.name} -->\n"
        f'<ins class="adsbygoogle"\n'
        f'     style="display:block"\n'
        f'     data-ad-client="{client}"\n'
        f'     data-ad-slot="{ad_unit.id}"\n'
        f"     {sizing}></ins>\n"
        f"<script>\n"
        f"     (adsbygoogle = window.adsbygoogle || []).push({{}});\n"
        f"</script>"
    )


class AdSenseRevenueSource:
    """Adapter over the AdSense API with a synthetic fallback.

    ``http`` is the application's shared ``httpx.AsyncClient``; each call builds a
    short-lived ``AdSenseClient`` bound to the project's access token.
    """

    def __init__(
        self,
        synthetic: SyntheticSource,
        http: Optional[httpx.AsyncClient] = None,
        client_factory: Optional[ClientFactory] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.synthetic = synthetic
        self._http = http
        self._client_factory = client_factory or self._default_client
        self._now = now

    def _default_client(self, access_token: Optional[str]) -> AdSenseClient:
        return AdSenseClient(access_token=access_token, http=self._http)

    # ── Revenue ──

    async def fetch_revenue(
        self, project_id: str, state: Connected, start: date, end: date
    ) -> RevenueReport:
        """Revenue for one connected project. Never raises for upstream failures."""
        if state.tokens is None:
            logger.info(
                f"No AdSense tokens for project {project_id}; using synthetic revenue",
                extra={"project_id": project_id},
            )
            return self.synthetic_report(start, end)

        client = self._client_factory(state.tokens.access_token)
        try:
            if self._expired(state.tokens):
                state.tokens = await self._refresh(client, state.tokens)
                logger.info(
                    f"Refreshed AdSense access token for project {project_id}",
                    extra={"project_id": project_id},
                )
            raw = await client.generate_report(
                account_resource(state.account.id), start, end
            )
            return transform_report(raw, start, end)
        except Exception as e:
            logger.warning(
                f"AdSense report failed for project {project_id}, "
                f"falling back to synthetic data: {e}",
                extra={"project_id": project_id},
            )
            return self.synthetic_report(start, end)
        finally:
            await client.close()

    def _expired(self, tokens: AdSenseTokens) -> bool:
        if tokens.expires_at is None or not tokens.refresh_token:
            return False
        expires_at = tokens.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= self._now()

    async def _refresh(self, client: AdSenseClient, tokens: AdSenseTokens) -> AdSenseTokens:
        token_data = await client.refresh_access_token(tokens.refresh_token)
        access_token = token_data.get("access_token")
        if not access_token:
            raise AdSenseAPIError("Refresh response did not include an access token")
        return _tokens_from(
            token_data, self._now(), fallback_refresh_token=tokens.refresh_token
        )

    def synthetic_report(self, start: date, end: date) -> RevenueReport:
        points = [DailyRevenuePoint(**p) for p in self.synthetic.daily_revenue(start, end)]
        return build_report(points, start, end)

    # ── Account lifecycle ──

    async def connect(self, auth_code: str) -> Tuple[AdSenseAccount, AdSenseTokens]:
        """Exchange an OAuth code and resolve the user's first AdSense account.

        Raises AdSenseAPIError when the exchange fails or no account exists.
        """
        client = self._client_factory(None)
        try:
            token_data = await client.exchange_code(auth_code)
            access_token = token_data.get("access_token")
            if not access_token:
                raise AdSenseAPIError("Token response did not include an access token")

            accounts = await client.list_accounts()
            if not accounts:
                raise AdSenseAPIError("No AdSense account found for this Google user", 404)
        finally:
            await client.close()

        first = accounts[0]
        account = AdSenseAccount(
            id=publisher_id_of(first.get("name", "")),
            name=first.get("displayName", ""),
            currency=first.get("currencyCode", "USD"),
        )
        tokens = _tokens_from(token_data, self._now())
        logger.info(f"Resolved AdSense account {account.id}")
        return account, tokens

    async def create_ad_unit(
        self, state: Connected, name: str, unit_type: str, size: str
    ) -> AdUnit:
        """Create an ad unit upstream and return it with its embed code."""
        access_token = state.tokens.access_token if state.tokens else None
        publisher_id = state.config.publisher_id or publisher_id_of(state.account.id)
        ad_client = f"{account_resource(state.account.id)}/adclients/ca-{publisher_id}"

        client = self._client_factory(access_token)
        try:
            created = await client.create_ad_unit(
                ad_client, name, AD_UNIT_FORMATS.get(unit_type, "DISPLAY")
            )
        finally:
            await client.close()

        ad_unit = AdUnit(
            id=created.get("name", "").rsplit("/", 1)[-1] or created.get("reportingDimensionId", ""),
            name=created.get("displayName", name),
            status="active" if created.get("state", "ACTIVE") == "ACTIVE" else "inactive",
            type=unit_type,
            size=size,
        )
        ad_unit.code = render_ad_code(publisher_id, ad_unit)
        return ad_unit
