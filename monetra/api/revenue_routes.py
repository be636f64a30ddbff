"""Monetra — Revenue API Routes."""

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse, Response

from monetra.api.deps import (
    get_bearer_token,
    get_dashboard_composer,
    get_optimization_service,
    get_reporting_service,
    get_summary_aggregator,
)
from monetra.api.pipeline import (
    RequestContext,
    run,
    serialize,
    validate_choice,
    validate_required,
)
from monetra.core.logging import get_logger
from monetra.models.revenue_models import CamelModel
from monetra.services.dashboard import (
    DEFAULT_TIME_RANGE,
    TIME_RANGES,
    RevenueDashboardComposer,
)
from monetra.services.optimization import RevenueOptimizationService
from monetra.services.reporting import (
    COMPARISON_FACTORS,
    EXPORT_FORMATS,
    RevenueReportingService,
    export_to_csv,
)
from monetra.services.summary import RevenueSummaryAggregator

logger = get_logger("api.revenue")

router = APIRouter(prefix="/revenue", tags=["Revenue"])


class ApplyRecommendationRequest(CamelModel):
    recommendation_id: Optional[str] = None


def _attachment(project_id: str, ext: str) -> Dict[str, str]:
    stamp = int(time.time() * 1000)
    return {"Content-Disposition": f'attachment; filename="revenue-{project_id}-{stamp}.{ext}"'}


@router.get("/summary")
async def get_revenue_summary(
    token: Optional[str] = Depends(get_bearer_token),
    aggregator: RevenueSummaryAggregator = Depends(get_summary_aggregator),
):
    """Totals across every monetized project owned by the caller."""
    return await run(
        RequestContext("GET /revenue/summary", "REVENUE_SUMMARY_FAILED"),
        token,
        lambda caller: aggregator.compose_summary(caller.id),
    )


@router.get("/{project_id}/dashboard")
async def get_revenue_dashboard(
    project_id: str,
    time_range: Optional[str] = Query(None, alias="timeRange", description="7d | 30d | 90d | 1y"),
    token: Optional[str] = Depends(get_bearer_token),
    composer: RevenueDashboardComposer = Depends(get_dashboard_composer),
):
    time_range = time_range or DEFAULT_TIME_RANGE
    return await run(
        RequestContext("GET /revenue/{projectId}/dashboard", "REVENUE_DASHBOARD_FAILED", project_id),
        token,
        lambda caller: composer.compose_dashboard(project_id, caller.id, time_range),
        validate=lambda: validate_choice(time_range, TIME_RANGES, "timeRange"),
    )


@router.get("/{project_id}/analytics")
async def get_revenue_analytics(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    reporting: RevenueReportingService = Depends(get_reporting_service),
):
    return await run(
        RequestContext("GET /revenue/{projectId}/analytics", "REVENUE_ANALYTICS_FAILED", project_id),
        token,
        lambda caller: reporting.analytics(project_id, caller.id),
    )


@router.get("/{project_id}/trends")
async def get_revenue_trends(
    project_id: str,
    period: Optional[str] = Query(None, description="7d | 30d | 90d | 1y"),
    token: Optional[str] = Depends(get_bearer_token),
    reporting: RevenueReportingService = Depends(get_reporting_service),
):
    period = period or DEFAULT_TIME_RANGE
    return await run(
        RequestContext("GET /revenue/{projectId}/trends", "REVENUE_TRENDS_FAILED", project_id),
        token,
        lambda caller: reporting.trends(project_id, caller.id, period),
        validate=lambda: validate_choice(period, TIME_RANGES, "period"),
    )


@router.get("/{project_id}/comparison")
async def get_revenue_comparison(
    project_id: str,
    compare_with: Optional[str] = Query(None, alias="compareWith"),
    token: Optional[str] = Depends(get_bearer_token),
    reporting: RevenueReportingService = Depends(get_reporting_service),
):
    def validate():
        if compare_with is not None:
            validate_choice(compare_with, COMPARISON_FACTORS, "compareWith")

    return await run(
        RequestContext("GET /revenue/{projectId}/comparison", "REVENUE_COMPARISON_FAILED", project_id),
        token,
        lambda caller: reporting.comparison(project_id, caller.id, compare_with),
        validate=validate,
    )


@router.get("/{project_id}/export")
async def export_revenue_data(
    project_id: str,
    format: str = Query("json", description="json | csv"),
    token: Optional[str] = Depends(get_bearer_token),
    reporting: RevenueReportingService = Depends(get_reporting_service),
):
    """90-day revenue export, delivered as a file attachment."""

    async def compute(caller):
        export = await reporting.export(project_id, caller.id)
        if format == "csv":
            return Response(
                content=export_to_csv(export),
                media_type="text/csv",
                headers=_attachment(project_id, "csv"),
            )
        return JSONResponse(content=serialize(export), headers=_attachment(project_id, "json"))

    return await run(
        RequestContext("GET /revenue/{projectId}/export", "REVENUE_EXPORT_FAILED", project_id),
        token,
        compute,
        validate=lambda: validate_choice(format, EXPORT_FORMATS, "format"),
    )


# ── Optimization settings ──


@router.get("/{project_id}/settings")
async def get_revenue_settings(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    optimization: RevenueOptimizationService = Depends(get_optimization_service),
):
    return await run(
        RequestContext("GET /revenue/{projectId}/settings", "REVENUE_SETTINGS_FAILED", project_id),
        token,
        lambda caller: optimization.get_settings(project_id, caller.id),
    )


@router.put("/{project_id}/settings")
async def update_revenue_settings(
    project_id: str,
    update: Dict[str, Any] = Body(...),
    token: Optional[str] = Depends(get_bearer_token),
    optimization: RevenueOptimizationService = Depends(get_optimization_service),
):
    """Partial update; each section is merged into the stored settings."""
    return await run(
        RequestContext(
            "PUT /revenue/{projectId}/settings", "REVENUE_SETTINGS_UPDATE_FAILED", project_id
        ),
        token,
        lambda caller: optimization.update_settings(project_id, caller.id, update),
    )


@router.get("/{project_id}/optimization")
async def get_optimization_recommendations(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    optimization: RevenueOptimizationService = Depends(get_optimization_service),
):
    return await run(
        RequestContext(
            "GET /revenue/{projectId}/optimization",
            "OPTIMIZATION_RECOMMENDATIONS_FAILED",
            project_id,
        ),
        token,
        lambda caller: optimization.recommendations(project_id, caller.id),
    )


@router.get("/{project_id}/optimization/report")
async def get_optimization_report(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    optimization: RevenueOptimizationService = Depends(get_optimization_service),
):
    return await run(
        RequestContext(
            "GET /revenue/{projectId}/optimization/report", "OPTIMIZATION_REPORT_FAILED", project_id
        ),
        token,
        lambda caller: optimization.report(project_id, caller.id),
    )


@router.post("/{project_id}/optimization/apply")
async def apply_optimization_recommendation(
    project_id: str,
    request: ApplyRecommendationRequest,
    token: Optional[str] = Depends(get_bearer_token),
    optimization: RevenueOptimizationService = Depends(get_optimization_service),
):
    return await run(
        RequestContext(
            "POST /revenue/{projectId}/optimization/apply", "OPTIMIZATION_APPLY_FAILED", project_id
        ),
        token,
        lambda caller: optimization.apply_recommendation(
            project_id, caller.id, request.recommendation_id
        ),
        validate=lambda: validate_required(recommendationId=request.recommendation_id),
    )
