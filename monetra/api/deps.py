"""Monetra — Composition Root.

FastAPI dependency providers that wire repositories, the revenue source and
the services together per request. Process-wide collaborators (the shared
HTTP client and the synthetic source) live on ``app.state`` and are created
by the application lifespan.
"""

from typing import Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from monetra.config import settings
from monetra.connectors.adsense.source import AdSenseRevenueSource
from monetra.core.synthetic import SyntheticSource
from monetra.database import get_session
from monetra.services.adsense import AdSenseService
from monetra.services.admin import AdminService
from monetra.services.dashboard import Clock, RevenueDashboardComposer, utc_now
from monetra.services.optimization import RevenueOptimizationService
from monetra.services.reporting import RevenueReportingService
from monetra.services.summary import RevenueSummaryAggregator
from monetra.storage.repository import (
    ContentReportRepository,
    ProjectRepository,
    SnapshotRepository,
    UserRepository,
)

bearer_scheme = HTTPBearer(auto_error=False)


# ── Auth ──


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


# ── Process-wide collaborators ──


def get_synthetic(request: Request) -> SyntheticSource:
    synthetic = getattr(request.app.state, "synthetic", None)
    if synthetic is None:
        synthetic = SyntheticSource(settings.synthetic_seed)
        request.app.state.synthetic = synthetic
    return synthetic


def get_http_client(request: Request) -> Optional[httpx.AsyncClient]:
    return getattr(request.app.state, "http_client", None)


def get_clock() -> Clock:
    return utc_now


# ── Repositories ──


def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_project_repository(session: Session = Depends(get_session)) -> ProjectRepository:
    return ProjectRepository(session)


def get_report_repository(session: Session = Depends(get_session)) -> ContentReportRepository:
    return ContentReportRepository(session)


def get_snapshot_repository(session: Session = Depends(get_session)) -> SnapshotRepository:
    return SnapshotRepository(session)


# ── Services ──


def get_revenue_source(
    synthetic: SyntheticSource = Depends(get_synthetic),
    http: Optional[httpx.AsyncClient] = Depends(get_http_client),
) -> AdSenseRevenueSource:
    return AdSenseRevenueSource(synthetic, http=http)


def get_dashboard_composer(
    projects: ProjectRepository = Depends(get_project_repository),
    source: AdSenseRevenueSource = Depends(get_revenue_source),
    synthetic: SyntheticSource = Depends(get_synthetic),
    snapshots: SnapshotRepository = Depends(get_snapshot_repository),
    clock: Clock = Depends(get_clock),
) -> RevenueDashboardComposer:
    return RevenueDashboardComposer(projects, source, synthetic, snapshots, clock)


def get_summary_aggregator(
    projects: ProjectRepository = Depends(get_project_repository),
    dashboards: RevenueDashboardComposer = Depends(get_dashboard_composer),
    clock: Clock = Depends(get_clock),
) -> RevenueSummaryAggregator:
    return RevenueSummaryAggregator(projects, dashboards, clock)


def get_reporting_service(
    projects: ProjectRepository = Depends(get_project_repository),
    dashboards: RevenueDashboardComposer = Depends(get_dashboard_composer),
    synthetic: SyntheticSource = Depends(get_synthetic),
    clock: Clock = Depends(get_clock),
) -> RevenueReportingService:
    return RevenueReportingService(projects, dashboards, synthetic, clock)


def get_optimization_service(
    projects: ProjectRepository = Depends(get_project_repository),
    synthetic: SyntheticSource = Depends(get_synthetic),
) -> RevenueOptimizationService:
    return RevenueOptimizationService(projects, synthetic)


def get_adsense_service(
    projects: ProjectRepository = Depends(get_project_repository),
    source: AdSenseRevenueSource = Depends(get_revenue_source),
    clock: Clock = Depends(get_clock),
) -> AdSenseService:
    return AdSenseService(projects, source, clock)


def get_admin_service(
    users: UserRepository = Depends(get_user_repository),
    projects: ProjectRepository = Depends(get_project_repository),
    reports: ContentReportRepository = Depends(get_report_repository),
    synthetic: SyntheticSource = Depends(get_synthetic),
    clock: Clock = Depends(get_clock),
) -> AdminService:
    return AdminService(users, projects, reports, synthetic, clock)
