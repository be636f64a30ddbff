"""Monetra — Admin Schemas."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from monetra.models.revenue_models import CamelModel


class UserStats(CamelModel):
    total: int = 0
    active: int = 0
    new_this_month: int = 0
    growth: float = 0.0


class ProjectStats(CamelModel):
    total: int = 0
    deployed: int = 0
    new_this_month: int = 0
    growth: float = 0.0


class RevenueStats(CamelModel):
    total: float = 0.0
    this_month: float = 0.0
    growth: float = 0.0
    average_per_user: float = 0.0


class CommunityStats(CamelModel):
    posts: int = 0
    comments: int = 0
    shared_projects: int = 0
    reports: int = 0


class PlatformStats(CamelModel):
    """Platform-wide snapshot. Revenue and community figures are placeholders."""

    users: UserStats
    projects: ProjectStats
    revenue: RevenueStats
    community: CommunityStats


UserStatus = Literal["active", "inactive", "suspended"]


class UserBrief(CamelModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None


class UserActivity(CamelModel):
    user_id: str
    user: UserBrief
    projects_count: int
    last_active: datetime
    total_revenue: float
    status: UserStatus


class Page(CamelModel):
    total: int
    has_more: bool


class UserActivityPage(Page):
    activities: List[UserActivity]


class ContentReportOut(CamelModel):
    id: str
    content_type: str
    content_id: str
    reason: str
    description: Optional[str] = None
    reporter: Optional[UserBrief] = None
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    resolution: Optional[str] = None


class ContentReportPage(Page):
    reports: List[ContentReportOut]


HealthLevel = Literal["healthy", "warning", "critical"]


class HealthAlert(CamelModel):
    id: str
    type: Literal["error", "warning", "info"]
    message: str
    timestamp: datetime
    resolved: bool


class SystemHealth(CamelModel):
    status: HealthLevel
    uptime: float
    response_time: float
    error_rate: float
    services: Dict[str, HealthLevel]
    alerts: List[HealthAlert]


class UserDetailProfile(CamelModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime
    is_suspended: bool
    suspension_reason: Optional[str] = None
    suspended_at: Optional[datetime] = None


class UserDetailStats(CamelModel):
    projects_count: int
    deployed_projects: int
    monetized_projects: int
    total_revenue: float


class RecentProject(CamelModel):
    id: str
    name: str
    status: str
    created_at: datetime


class UserDetails(CamelModel):
    user: UserDetailProfile
    statistics: UserDetailStats
    recent_projects: List[RecentProject]


# ── Synthetic admin feeds ──


class LogMetadata(CamelModel):
    user_id: Optional[str] = None
    project_id: Optional[str] = None


class SystemLog(CamelModel):
    id: str
    timestamp: datetime
    level: Literal["error", "warn", "info", "debug"]
    message: str
    service: str
    metadata: LogMetadata


class SystemLogPage(Page):
    logs: List[SystemLog]


class RevenueTrendDay(CamelModel):
    date: str
    revenue: float
    users: int


class TopPerformer(CamelModel):
    user_id: str
    name: str
    revenue: float


class PlatformRevenueTrends(CamelModel):
    total_revenue: float
    growth: float
    daily_data: List[RevenueTrendDay]
    top_performers: List[TopPerformer]


class RecentDeployment(CamelModel):
    id: str
    project_name: str
    status: Literal["success", "failed", "pending"]
    platform: str
    deployed_at: datetime
    duration: int


class DeploymentStats(CamelModel):
    total_deployments: int
    successful_deployments: int
    failed_deployments: int
    average_deploy_time: float
    deployments_by_platform: Dict[str, int]
    recent_deployments: List[RecentDeployment]
