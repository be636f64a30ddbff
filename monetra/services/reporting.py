"""Monetra — Revenue Analytics, Trends, Comparison & Export.

Trends and comparisons scale the current 30-day dashboard by fixed factors
in place of real historical data, and analytics are synthetic apart from the
static suggestion list.
"""

import csv
import io
import math
from typing import Optional

from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource
from monetra.models.revenue_models import (
    AudienceInsights,
    CompetitorAnalysis,
    ComparisonFigures,
    CountryEarnings,
    DashboardSnapshot,
    DeviceBreakdown,
    ExportSummary,
    OptimizationSuggestion,
    PerformanceMetrics,
    RevenueAnalytics,
    RevenueComparison,
    RevenueExport,
    RevenueTrends,
    TrafficSource,
    TrendPoint,
)
from monetra.services.dashboard import (
    DEFAULT_TIME_RANGE,
    Clock,
    RevenueDashboardComposer,
    resolve_date_range,
    utc_now,
)
from monetra.services.ownership import load_owned_project
from monetra.storage.repository import ProjectRepository

logger = get_logger("services.reporting")

EXPORT_TIME_RANGE = "90d"
EXPORT_FORMATS = ("json", "csv")
CSV_HEADERS = ["Date", "Earnings", "Impressions", "Clicks", "CTR", "CPM"]

# compareWith → (earnings, impressions, clicks) factors for the baseline period
COMPARISON_FACTORS = {
    "previous_month": (0.85, 0.9, 0.88),
    "same_month_last_year": (0.7, 0.8, 0.75),
}

OPTIMIZATION_SUGGESTIONS = [
    OptimizationSuggestion(
        type="placement",
        title="Add above-the-fold ad placement",
        description="Adding an ad unit above the fold can increase viewability and earnings by 15-25%",
        potential_increase=20,
        priority="high",
    ),
    OptimizationSuggestion(
        type="format",
        title="Enable responsive ad units",
        description="Responsive ads adapt to different screen sizes and typically perform better",
        potential_increase=15,
        priority="medium",
    ),
    OptimizationSuggestion(
        type="targeting",
        title="Optimize ad targeting",
        description="Review and update your ad targeting settings for better relevance",
        potential_increase=10,
        priority="medium",
    ),
    OptimizationSuggestion(
        type="content",
        title="Improve content quality",
        description="Higher quality content attracts better ads and higher CPMs",
        potential_increase=25,
        priority="high",
    ),
]

IMPROVEMENT_AREAS = [
    "Ad placement optimization",
    "Content quality improvement",
    "Mobile user experience",
]


def percent_change(current: float, baseline: float) -> float:
    if baseline == 0:
        return 0.0
    return (current - baseline) / baseline * 100


def build_trends(dashboard: DashboardSnapshot) -> RevenueTrends:
    return RevenueTrends(
        earnings=TrendPoint(
            current=dashboard.total_earnings,
            previous=dashboard.total_earnings * 0.85,
            change=15,
            trend="up",
        ),
        impressions=TrendPoint(
            current=dashboard.impressions,
            previous=math.floor(dashboard.impressions * 0.9),
            change=10,
            trend="up",
        ),
        ctr=TrendPoint(current=dashboard.ctr, previous=dashboard.ctr * 0.95, change=5, trend="up"),
        cpm=TrendPoint(current=dashboard.cpm, previous=dashboard.cpm * 1.1, change=-10, trend="down"),
    )


def build_comparison(dashboard: DashboardSnapshot, compare_with: Optional[str]) -> RevenueComparison:
    current = ComparisonFigures(
        earnings=dashboard.total_earnings,
        impressions=dashboard.impressions,
        clicks=dashboard.clicks,
        ctr=dashboard.ctr,
        cpm=dashboard.cpm,
    )

    factors = COMPARISON_FACTORS.get(compare_with or "")
    if factors is None:
        baseline = current.model_copy()
    else:
        earnings_f, impressions_f, clicks_f = factors
        baseline = ComparisonFigures(
            earnings=dashboard.total_earnings * earnings_f,
            impressions=math.floor(dashboard.impressions * impressions_f),
            clicks=math.floor(dashboard.clicks * clicks_f),
            ctr=dashboard.ctr,
            cpm=dashboard.cpm,
        )

    changes = ComparisonFigures(
        **{
            field: percent_change(getattr(current, field), getattr(baseline, field))
            for field in ComparisonFigures.model_fields
        }
    )
    return RevenueComparison(current=current, comparison=baseline, changes=changes)


def export_to_csv(export: RevenueExport) -> str:
    """Daily rows as CSV. CTR and CPM are 0.00 for days without impressions."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for day in export.daily_data:
        ctr = day.clicks / day.impressions * 100 if day.impressions else 0.0
        cpm = day.earnings / day.impressions * 1000 if day.impressions else 0.0
        writer.writerow(
            [
                day.date,
                f"{day.earnings:.2f}",
                day.impressions,
                day.clicks,
                f"{ctr:.2f}",
                f"{cpm:.2f}",
            ]
        )
    return buf.getvalue().rstrip("\n")


class RevenueReportingService:
    def __init__(
        self,
        projects: ProjectRepository,
        dashboards: RevenueDashboardComposer,
        synthetic: SyntheticSource,
        clock: Clock = utc_now,
    ):
        self.projects = projects
        self.dashboards = dashboards
        self.synthetic = synthetic
        self.clock = clock

    def analytics(self, project_id: str, user_id: str) -> RevenueAnalytics:
        load_owned_project(self.projects, project_id, user_id, "view analytics for")
        benchmark = self.synthetic.industry_benchmark()
        return RevenueAnalytics(
            performance_metrics=PerformanceMetrics(**self.synthetic.performance_metrics()),
            audience_insights=AudienceInsights(
                top_countries=[CountryEarnings(**c) for c in self.synthetic.country_earnings()],
                device_breakdown=DeviceBreakdown(**self.synthetic.device_breakdown()),
                traffic_sources=[TrafficSource(**s) for s in self.synthetic.traffic_sources()],
            ),
            optimization_suggestions=OPTIMIZATION_SUGGESTIONS,
            competitor_analysis=CompetitorAnalysis(
                average_industry_earnings=benchmark["average_industry_earnings"],
                your_performance=benchmark["your_performance"],
                improvement_areas=IMPROVEMENT_AREAS,
            ),
        )

    async def trends(
        self, project_id: str, user_id: str, period: str = DEFAULT_TIME_RANGE
    ) -> RevenueTrends:
        dashboard = await self.dashboards.compose_dashboard(project_id, user_id, period)
        return build_trends(dashboard)

    async def comparison(
        self, project_id: str, user_id: str, compare_with: Optional[str] = None
    ) -> RevenueComparison:
        dashboard = await self.dashboards.compose_dashboard(
            project_id, user_id, DEFAULT_TIME_RANGE
        )
        return build_comparison(dashboard, compare_with)

    async def export(self, project_id: str, user_id: str) -> RevenueExport:
        dashboard = await self.dashboards.compose_dashboard(
            project_id, user_id, EXPORT_TIME_RANGE
        )
        now = self.clock()
        start, end = resolve_date_range(EXPORT_TIME_RANGE, now.date())
        return RevenueExport(
            project=project_id,
            export_date=now.isoformat(),
            date_range={"start": start.isoformat(), "end": end.isoformat()},
            summary=ExportSummary(
                total_earnings=dashboard.total_earnings,
                total_impressions=dashboard.impressions,
                total_clicks=dashboard.clicks,
                average_ctr=dashboard.ctr,
                average_cpm=dashboard.cpm,
            ),
            daily_data=dashboard.earnings_chart,
            top_performing_ads=dashboard.top_performing_ads,
            revenue_breakdown=dashboard.revenue_breakdown,
        )
