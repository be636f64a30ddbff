"""Monetra — Revenue Dashboard Composer.

Turns one connected project's daily revenue series into the dashboard
snapshot: period totals, current-month earnings, daily average, top ad units,
revenue breakdown and linear projections.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, Tuple

from monetra.core.errors import ValidationError
from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource
from monetra.models.db_models import Project
from monetra.models.revenue_models import (
    AdUnit,
    Connected,
    DailyRevenuePoint,
    DashboardSnapshot,
    ProjectedEarnings,
    RevenueBreakdown,
    RevenueReport,
    TopPerformingAd,
    parse_revenue_state,
)
from monetra.services.ownership import load_owned_project
from monetra.storage.repository import ProjectRepository, SnapshotRepository

logger = get_logger("services.dashboard")

Clock = Callable[[], datetime]

TIME_RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}
TIME_RANGES = ("7d", "30d", "90d", "1y")
DEFAULT_TIME_RANGE = "30d"

TOP_ADS_LIMIT = 5
NEXT_MONTH_GROWTH = 1.1
DAYS_IN_YEAR = 365


class RevenueSource(Protocol):
    async def fetch_revenue(
        self, project_id: str, state: Connected, start: date, end: date
    ) -> RevenueReport: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ── Pure calculations ──


def resolve_date_range(time_range: str, today: date) -> Tuple[date, date]:
    """[start, end] for a dashboard time range, ending today."""
    if time_range in TIME_RANGE_DAYS:
        return today - timedelta(days=TIME_RANGE_DAYS[time_range]), today
    if time_range == "1y":
        # Feb 29 has no counterpart in the previous year
        day = 28 if (today.month == 2 and today.day == 29) else today.day
        return today.replace(year=today.year - 1, day=day), today
    raise ValidationError(f"Invalid time range '{time_range}'. Use one of: {', '.join(TIME_RANGES)}")


def monthly_earnings(points: List[DailyRevenuePoint], today: date) -> float:
    """Sum of earnings dated in today's calendar month and year.

    ``today`` is the composer clock's own date, so the month follows the clock's
    time zone. The default clock is UTC.
    """
    total = 0.0
    for p in points:
        day = date.fromisoformat(p.date)
        if day.year == today.year and day.month == today.month:
            total += p.earnings
    return total


def daily_average(points: List[DailyRevenuePoint]) -> float:
    if not points:
        return 0.0
    return sum(p.earnings for p in points) / len(points)


def project_earnings(daily: float, today: date) -> ProjectedEarnings:
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    this_month = daily * days_in_month
    return ProjectedEarnings(
        this_month=this_month,
        next_month=this_month * NEXT_MONTH_GROWTH,
        this_year=daily * DAYS_IN_YEAR,
    )


def top_performing_ads(ad_units: List[AdUnit], synthetic: SyntheticSource) -> List[TopPerformingAd]:
    """First few configured ad units with placeholder performance figures."""
    ads = []
    for unit in ad_units[:TOP_ADS_LIMIT]:
        perf = synthetic.ad_unit_performance()
        ads.append(
            TopPerformingAd(
                ad_unit_id=unit.id,
                name=unit.name,
                earnings=perf["earnings"],
                impressions=perf["impressions"],
                clicks=perf["clicks"],
            )
        )
    return ads


# ── Composer ──


class RevenueDashboardComposer:
    """Builds a DashboardSnapshot for a project the caller owns."""

    def __init__(
        self,
        projects: ProjectRepository,
        source: RevenueSource,
        synthetic: SyntheticSource,
        snapshots: Optional[SnapshotRepository] = None,
        clock: Clock = utc_now,
    ):
        self.projects = projects
        self.source = source
        self.synthetic = synthetic
        self.snapshots = snapshots
        self.clock = clock

    async def compose_dashboard(
        self, project_id: str, user_id: str, time_range: str = DEFAULT_TIME_RANGE
    ) -> DashboardSnapshot:
        project = load_owned_project(self.projects, project_id, user_id)
        state = parse_revenue_state(project.revenue_json)
        if not isinstance(state, Connected):
            return DashboardSnapshot()

        today = self.clock().date()
        start, end = resolve_date_range(time_range, today)
        tokens = state.tokens
        report = await self.source.fetch_revenue(project_id, state, start, end)
        if state.tokens is not tokens:
            self._save_tokens(project, state)

        points = report.daily_data
        daily = daily_average(points)
        snapshot = DashboardSnapshot(
            total_earnings=report.total_earnings,
            monthly_earnings=monthly_earnings(points, today),
            daily_earnings=daily,
            impressions=report.impressions,
            clicks=report.clicks,
            ctr=report.ctr,
            cpm=report.cpm,
            top_performing_ads=top_performing_ads(state.config.ad_units, self.synthetic),
            earnings_chart=points,
            revenue_breakdown=RevenueBreakdown(adsense=report.total_earnings),
            projected_earnings=project_earnings(daily, today),
        )

        self._cache(project_id, time_range, snapshot)
        return snapshot

    def _save_tokens(self, project: Project, state: Connected) -> None:
        try:
            self.projects.update_revenue(project, state)
        except Exception as e:
            logger.warning(
                f"Failed to store refreshed AdSense tokens: {e}", extra={"project_id": project.id}
            )
            self.projects.session.rollback()

    def _cache(self, project_id: str, time_range: str, snapshot: DashboardSnapshot) -> None:
        if self.snapshots is None:
            return
        try:
            self.snapshots.save(
                project_id, time_range, snapshot.model_dump_json(by_alias=True)
            )
            logger.debug(f"Revenue snapshot cached for {project_id}", extra={"project_id": project_id})
        except Exception as e:
            logger.warning(
                f"Failed to cache revenue snapshot: {e}", extra={"project_id": project_id}
            )
            self._rollback()

    def _rollback(self) -> None:
        session = getattr(self.snapshots, "session", None)
        if session is not None:
            session.rollback()
