"""Monetra — Admin API Routes.

All endpoints require an admin caller; the role check happens in
``AdminService`` against the stored user, not the token claim.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from monetra.api.deps import get_admin_service, get_bearer_token
from monetra.api.pipeline import RequestContext, run, validate_choice, validate_required
from monetra.core.logging import get_logger
from monetra.models.revenue_models import CamelModel
from monetra.services.admin import REVIEW_ACTIONS, AdminService

logger = get_logger("api.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])

USER_STATUSES = ("active", "inactive", "suspended")
REPORT_STATUSES = ("pending", "reviewed", "resolved", "dismissed")
LOG_LEVELS = ("error", "warn", "info", "debug")


class SuspendRequest(CamelModel):
    reason: Optional[str] = None


class ReviewRequest(CamelModel):
    action: Optional[str] = Field(None, description="dismiss | resolve")
    resolution: Optional[str] = None


def _optional_choice(value: Optional[str], choices, field: str):
    return lambda: validate_choice(value, choices, field) if value is not None else None


@router.get("/stats")
async def get_platform_stats(
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/stats", "PLATFORM_STATS_FAILED"),
        token,
        lambda caller: admin.compose_stats(caller.id),
    )


@router.get("/users")
async def get_user_activities(
    page: int = Query(1),
    limit: int = Query(20),
    status: Optional[str] = Query(None, description="active | inactive | suspended"),
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/users", "USER_ACTIVITIES_FAILED"),
        token,
        lambda caller: admin.list_user_activities(caller.id, page, limit, status),
        validate=_optional_choice(status, USER_STATUSES, "status"),
    )


@router.get("/users/{target_user_id}")
async def get_user_details(
    target_user_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/users/{userId}", "USER_DETAILS_FAILED"),
        token,
        lambda caller: admin.get_user_details(caller.id, target_user_id),
    )


@router.post("/users/{target_user_id}/suspend")
async def suspend_user(
    target_user_id: str,
    request: SuspendRequest,
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("POST /admin/users/{userId}/suspend", "USER_SUSPEND_FAILED"),
        token,
        lambda caller: admin.suspend_user(caller.id, target_user_id, request.reason),
        validate=lambda: validate_required(reason=request.reason),
        message="User suspended successfully",
    )


@router.post("/users/{target_user_id}/unsuspend")
async def unsuspend_user(
    target_user_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("POST /admin/users/{userId}/unsuspend", "USER_UNSUSPEND_FAILED"),
        token,
        lambda caller: admin.unsuspend_user(caller.id, target_user_id),
        message="User unsuspended successfully",
    )


@router.get("/system-health")
async def get_system_health(
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/system-health", "SYSTEM_HEALTH_FAILED"),
        token,
        lambda caller: admin.system_health(caller.id),
    )


@router.get("/reports")
async def get_content_reports(
    page: int = Query(1),
    limit: int = Query(20),
    status: Optional[str] = Query(None, description="pending | reviewed | resolved | dismissed"),
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/reports", "CONTENT_REPORTS_FAILED"),
        token,
        lambda caller: admin.list_reports(caller.id, page, limit, status),
        validate=_optional_choice(status, REPORT_STATUSES, "status"),
    )


@router.post("/reports/{report_id}/review")
async def review_content_report(
    report_id: str,
    request: ReviewRequest,
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    def validate():
        validate_required(action=request.action)
        validate_choice(request.action, REVIEW_ACTIONS, "action")

    return await run(
        RequestContext("POST /admin/reports/{reportId}/review", "CONTENT_REPORT_REVIEW_FAILED"),
        token,
        lambda caller: admin.review_report(caller.id, report_id, request.action, request.resolution),
        validate=validate,
        message=f"Report {request.action}ed successfully",
    )


@router.get("/logs")
async def get_system_logs(
    page: int = Query(1),
    limit: int = Query(50),
    level: Optional[str] = Query(None, description="error | warn | info | debug"),
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/logs", "SYSTEM_LOGS_FAILED"),
        token,
        lambda caller: admin.system_logs(caller.id, page, limit, level),
        validate=_optional_choice(level, LOG_LEVELS, "level"),
    )


@router.get("/revenue-trends")
async def get_revenue_trends(
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/revenue-trends", "REVENUE_TRENDS_FAILED"),
        token,
        lambda caller: admin.revenue_trends(caller.id),
    )


@router.get("/deployment-stats")
async def get_deployment_stats(
    token: Optional[str] = Depends(get_bearer_token),
    admin: AdminService = Depends(get_admin_service),
):
    return await run(
        RequestContext("GET /admin/deployment-stats", "DEPLOYMENT_STATS_FAILED"),
        token,
        lambda caller: admin.deployment_stats(caller.id),
    )
