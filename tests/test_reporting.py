"""
Tests for revenue analytics, trends, comparison and export
"""

import pytest

from conftest import StubRevenueSource, fixed_clock, make_report
from monetra.core.errors import NotFound
from monetra.core.synthetic import SyntheticSource
from monetra.models.revenue_models import (
    DailyRevenuePoint,
    DashboardSnapshot,
    ExportSummary,
    RevenueBreakdown,
    RevenueExport,
)
from monetra.services.dashboard import RevenueDashboardComposer
from monetra.services.reporting import (
    RevenueReportingService,
    build_comparison,
    build_trends,
    export_to_csv,
    percent_change,
)
from monetra.storage.repository import ProjectRepository


def _service(session, source):
    projects = ProjectRepository(session)
    synthetic = SyntheticSource(seed=6)
    dashboards = RevenueDashboardComposer(projects, source, synthetic, None, fixed_clock)
    return RevenueReportingService(projects, dashboards, synthetic, fixed_clock)


DASHBOARD = DashboardSnapshot(
    total_earnings=100.0, impressions=1001, clicks=51, ctr=5.0, cpm=100.0
)


def test_percent_change():
    assert percent_change(110, 100) == pytest.approx(10)
    assert percent_change(5, 0) == 0


def test_trends_scale_current_figures():
    trends = build_trends(DASHBOARD)

    assert trends.earnings.previous == pytest.approx(85)
    assert trends.impressions.previous == 900
    assert trends.cpm.trend == "down"
    assert trends.cpm.change == -10


def test_comparison_with_previous_month():
    comparison = build_comparison(DASHBOARD, "previous_month")

    assert comparison.comparison.earnings == pytest.approx(85)
    assert comparison.comparison.impressions == 900
    assert comparison.comparison.clicks == 44
    assert comparison.changes.earnings == pytest.approx(100 / 85 * 100 - 100)
    assert comparison.changes.ctr == 0


def test_comparison_without_baseline_shows_no_change():
    comparison = build_comparison(DASHBOARD, None)

    assert comparison.comparison == comparison.current
    assert comparison.changes.earnings == 0


def test_csv_export_rows():
    export = RevenueExport(
        project="p1",
        export_date="2024-01-02T12:00:00+00:00",
        date_range={"start": "2024-01-01", "end": "2024-01-02"},
        summary=ExportSummary(
            total_earnings=3.5, total_impressions=1000, total_clicks=20, average_ctr=2, average_cpm=3.5
        ),
        daily_data=[
            DailyRevenuePoint(date="2024-01-01", earnings=2.5, impressions=1000, clicks=20),
            DailyRevenuePoint(date="2024-01-02", earnings=1.0, impressions=0, clicks=0),
        ],
        top_performing_ads=[],
        revenue_breakdown=RevenueBreakdown(adsense=3.5),
    )

    assert export_to_csv(export).split("\n") == [
        "Date,Earnings,Impressions,Clicks,CTR,CPM",
        "2024-01-01,2.50,1000,20,2.00,2.50",
        "2024-01-02,1.00,0,0,0.00,0.00",
    ]


@pytest.mark.asyncio
async def test_export_covers_ninety_days(session, normal_user, make_project):
    project = make_project(normal_user, connected=True)
    source = StubRevenueSource(default=make_report([("2024-01-01", 4.0, 400, 4)]))

    export = await _service(session, source).export(project.id, normal_user.id)

    assert export.project == project.id
    assert export.date_range == {"start": "2023-10-04", "end": "2024-01-02"}
    assert export.summary.total_earnings == 4
    assert export.summary.total_impressions == 400
    assert [d.date for d in export.daily_data] == ["2024-01-01"]


@pytest.mark.asyncio
async def test_trends_for_disconnected_project_are_zero(session, normal_user, make_project):
    project = make_project(normal_user)

    trends = await _service(session, StubRevenueSource()).trends(project.id, normal_user.id, "7d")

    assert trends.earnings.current == 0
    assert trends.earnings.previous == 0


def test_analytics_requires_project(session, normal_user):
    with pytest.raises(NotFound):
        _service(session, StubRevenueSource()).analytics("missing", normal_user.id)


def test_analytics_shape(session, normal_user, make_project):
    project = make_project(normal_user)

    analytics = _service(session, StubRevenueSource()).analytics(project.id, normal_user.id)

    assert len(analytics.optimization_suggestions) == 4
    assert [c.country for c in analytics.audience_insights.top_countries][0] == "United States"
    assert analytics.competitor_analysis.your_performance in ("above", "average")
