"""Monetra — AdSense Account Management.

Connect / disconnect, ad units and ad code, account-level ad settings and
the raw revenue report for a project the caller owns.
"""

from datetime import date, timedelta
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from pydantic import ValidationError as PydanticValidationError

from monetra.config import settings
from monetra.connectors.adsense.client import AdSenseAPIError
from monetra.connectors.adsense.source import AdSenseRevenueSource, render_ad_code
from monetra.core.errors import ExternalServiceError, NotFound, ValidationError
from monetra.core.logging import get_logger
from monetra.models.db_models import Project
from monetra.models.revenue_models import (
    AdSenseAccount,
    AdSenseConfig,
    AdSenseStatus,
    AdUnit,
    Connected,
    Disconnected,
    RevenueReport,
    parse_revenue_state,
)
from monetra.services.dashboard import Clock, utc_now
from monetra.services.ownership import load_owned_project
from monetra.storage.repository import ProjectRepository

logger = get_logger("services.adsense")

OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/adsense.readonly",
    "https://www.googleapis.com/auth/adsense",
]
AD_UNIT_TYPES = ("display", "text", "link")
# Config keys a client may change through the settings endpoint
EDITABLE_CONFIG_KEYS = ("autoAds", "adDensity", "excludedPages")
DEFAULT_REVENUE_DAYS = 7
# Widest range a client may request; matches the 1y dashboard range
MAX_REVENUE_DAYS = 366


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")


class AdSenseService:
    def __init__(
        self,
        projects: ProjectRepository,
        source: AdSenseRevenueSource,
        clock: Clock = utc_now,
    ):
        self.projects = projects
        self.source = source
        self.clock = clock

    def _connected(self, project: Project) -> Connected:
        state = parse_revenue_state(project.revenue_json)
        if not isinstance(state, Connected):
            raise ValidationError("AdSense account is not connected for this project")
        return state

    # ── OAuth ──

    def oauth_url(self, project_id: str, user_id: str) -> str:
        load_owned_project(self.projects, project_id, user_id, "connect AdSense for")
        query = urlencode(
            {
                "client_id": settings.google_client_id,
                "redirect_uri": settings.google_redirect_uri,
                "scope": " ".join(OAUTH_SCOPES),
                "response_type": "code",
                "access_type": "offline",
                "prompt": "consent",
                "state": project_id,
            }
        )
        return f"{settings.google_auth_url}?{query}"

    async def connect(self, project_id: str, user_id: str, auth_code: str) -> AdSenseAccount:
        project = load_owned_project(self.projects, project_id, user_id, "connect AdSense for")
        try:
            account, tokens = await self.source.connect(auth_code)
        except AdSenseAPIError as e:
            raise ExternalServiceError("AdSense", str(e))

        current = parse_revenue_state(project.revenue_json)
        config = (
            current.config
            if isinstance(current, Connected) and current.account.id == account.id
            else AdSenseConfig(publisher_id=account.id)
        )
        self.projects.update_revenue(
            project, Connected(account=account, config=config, tokens=tokens)
        )
        logger.info(
            f"AdSense account {account.id} connected to project {project_id}",
            extra={"project_id": project_id, "user_id": user_id},
        )
        return account

    def status(self, project_id: str, user_id: str) -> AdSenseStatus:
        project = load_owned_project(self.projects, project_id, user_id)
        state = parse_revenue_state(project.revenue_json)
        if isinstance(state, Connected):
            return AdSenseStatus(
                connected=True, account=state.account, ad_units=state.config.ad_units
            )
        return AdSenseStatus(connected=False)

    def disconnect(self, project_id: str, user_id: str) -> None:
        project = load_owned_project(self.projects, project_id, user_id, "disconnect AdSense for")
        self.projects.update_revenue(project, Disconnected())
        logger.info(
            f"AdSense disconnected from project {project_id}",
            extra={"project_id": project_id, "user_id": user_id},
        )

    # ── Ad units ──

    async def create_ad_unit(
        self, project_id: str, user_id: str, name: str, unit_type: str, size: str
    ) -> AdUnit:
        if unit_type not in AD_UNIT_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(AD_UNIT_TYPES)}")

        project = load_owned_project(self.projects, project_id, user_id, "create ad units for")
        state = self._connected(project)

        try:
            ad_unit = await self.source.create_ad_unit(state, name, unit_type, size)
        except AdSenseAPIError as e:
            raise ExternalServiceError("AdSense", str(e))

        state.config.ad_units.append(ad_unit)
        self.projects.update_revenue(project, state)
        logger.info(f"Ad unit {ad_unit.id} created", extra={"project_id": project_id})
        return ad_unit

    def ad_code(self, project_id: str, user_id: str, ad_unit_id: str) -> str:
        project = load_owned_project(self.projects, project_id, user_id)
        state = self._connected(project)
        unit = next((u for u in state.config.ad_units if u.id == ad_unit_id), None)
        if unit is None:
            raise NotFound("Ad unit")
        return unit.code or render_ad_code(
            state.config.publisher_id or state.account.id, unit
        )

    # ── Settings ──

    def update_settings(
        self, project_id: str, user_id: str, update: Dict[str, Any]
    ) -> AdSenseConfig:
        project = load_owned_project(self.projects, project_id, user_id, "update settings for")
        state = self._connected(project)

        merged = state.config.model_dump(by_alias=True)
        merged.update({k: v for k, v in update.items() if k in EDITABLE_CONFIG_KEYS})
        try:
            config = AdSenseConfig.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid AdSense settings: {e.errors()[0]['msg']}")

        self.projects.update_revenue(
            project, Connected(account=state.account, config=config, tokens=state.tokens)
        )
        return config

    # ── Revenue ──

    async def revenue_data(
        self,
        project_id: str,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> RevenueReport:
        """Raw revenue report; defaults to the last seven days."""
        project = load_owned_project(self.projects, project_id, user_id)
        state = self._connected(project)

        today = self.clock().date()
        end = _parse_date(end_date, "endDate") if end_date else today
        start = (
            _parse_date(start_date, "startDate")
            if start_date
            else today - timedelta(days=DEFAULT_REVENUE_DAYS)
        )
        if start > end:
            raise ValidationError("startDate must not be after endDate")
        if (end - start).days > MAX_REVENUE_DAYS:
            raise ValidationError(f"Date range must not exceed {MAX_REVENUE_DAYS} days")

        tokens = state.tokens
        report = await self.source.fetch_revenue(project_id, state, start, end)
        if state.tokens is not tokens:
            self.projects.update_revenue(project, state)
        return report
