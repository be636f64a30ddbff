"""Monetra — Admin Statistics & Moderation.

Everything here is gated on the caller holding the admin role. User and
project counts come from the database; revenue, community, health, log and
deployment figures are placeholders from the synthetic source.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from monetra.config import settings
from monetra.core.errors import Forbidden, NotFound, ValidationError
from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource
from monetra.models.admin_models import (
    CommunityStats,
    ContentReportOut,
    ContentReportPage,
    DeploymentStats,
    HealthAlert,
    PlatformRevenueTrends,
    PlatformStats,
    ProjectStats,
    RecentProject,
    RevenueStats,
    SystemHealth,
    SystemLog,
    SystemLogPage,
    UserActivity,
    UserActivityPage,
    UserBrief,
    UserDetailProfile,
    UserDetails,
    UserDetailStats,
    UserStats,
)
from monetra.models.db_models import User
from monetra.services.dashboard import Clock, utc_now
from monetra.storage.repository import (
    ContentReportRepository,
    ProjectRepository,
    UserRepository,
)

logger = get_logger("services.admin")

ACTIVITY_WINDOW = timedelta(days=30)
RECENT_PROJECTS_LIMIT = 5
REVIEW_ACTIONS = {"dismiss": "dismissed", "resolve": "resolved"}


def growth_rate(this_period: float, last_period: float) -> float:
    """Percentage change, 0 when there is no baseline."""
    if last_period == 0:
        return 0.0
    return (this_period - last_period) / last_period * 100


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _offset(page: int, limit: int) -> int:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")
    return (page - 1) * limit


class AdminService:
    def __init__(
        self,
        users: UserRepository,
        projects: ProjectRepository,
        reports: ContentReportRepository,
        synthetic: SyntheticSource,
        clock: Clock = utc_now,
        admin_role: str = settings.admin_role,
    ):
        self.users = users
        self.projects = projects
        self.reports = reports
        self.synthetic = synthetic
        self.clock = clock
        self.admin_role = admin_role

    def require_admin(self, caller_id: str) -> User:
        user = self.users.get(caller_id)
        if user is None or user.role != self.admin_role:
            raise Forbidden("Admin access required")
        return user

    # ── Platform statistics ──

    def compose_stats(self, caller_id: str) -> PlatformStats:
        self.require_admin(caller_id)

        now = self.clock()
        month_ago = now - ACTIVITY_WINDOW
        two_months_ago = now - 2 * ACTIVITY_WINDOW

        total_users = self.users.count()
        new_users = self.users.count(created_since=month_ago)
        new_users_last_month = self.users.count(
            created_since=two_months_ago, created_before=month_ago
        )
        users = UserStats(
            total=total_users,
            active=self.users.count(updated_since=month_ago),
            new_this_month=new_users,
            growth=growth_rate(new_users, new_users_last_month),
        )

        new_projects = self.projects.count(created_since=month_ago)
        new_projects_last_month = self.projects.count(
            created_since=two_months_ago, created_before=month_ago
        )
        projects = ProjectStats(
            total=self.projects.count(),
            deployed=self.projects.count(status="deployed"),
            new_this_month=new_projects,
            growth=growth_rate(new_projects, new_projects_last_month),
        )

        rev = self.synthetic.platform_revenue()
        revenue = RevenueStats(
            total=rev["total"],
            this_month=rev["this_month"],
            growth=growth_rate(rev["this_month"], rev["last_month"]),
            average_per_user=rev["total"] / total_users if total_users > 0 else 0.0,
        )

        community = CommunityStats(**self.synthetic.community_counts())

        return PlatformStats(users=users, projects=projects, revenue=revenue, community=community)

    # ── Users ──

    def list_user_activities(
        self, caller_id: str, page: int = 1, limit: int = 20, status: Optional[str] = None
    ) -> UserActivityPage:
        self.require_admin(caller_id)
        offset = _offset(page, limit)
        active_since = self.clock() - ACTIVITY_WINDOW

        users, total = self.users.list_by_status(status, active_since, offset, limit)

        activities: List[UserActivity] = []
        for user in users:
            last_active = _as_utc(user.updated_at)
            if user.is_suspended:
                user_status = "suspended"
            elif last_active >= active_since:
                user_status = "active"
            else:
                user_status = "inactive"

            activities.append(
                UserActivity(
                    user_id=user.id,
                    user=UserBrief(id=user.id, name=user.name, email=user.email, avatar=user.avatar),
                    projects_count=len(self.projects.list_for_user(user.id)),
                    last_active=last_active,
                    total_revenue=self.synthetic.user_revenue(),
                    status=user_status,
                )
            )

        return UserActivityPage(
            activities=activities, total=total, has_more=offset + limit < total
        )

    def get_user_details(self, caller_id: str, target_user_id: str) -> UserDetails:
        self.require_admin(caller_id)
        user = self.users.get(target_user_id)
        if user is None:
            raise NotFound("User")

        projects = self.projects.list_for_user(user.id)
        monetized = self.projects.list_monetized(user.id)

        return UserDetails(
            user=UserDetailProfile(
                id=user.id,
                name=user.name,
                email=user.email,
                avatar=user.avatar,
                role=user.role,
                created_at=_as_utc(user.created_at),
                updated_at=_as_utc(user.updated_at),
                is_suspended=user.is_suspended,
                suspension_reason=user.suspension_reason,
                suspended_at=user.suspended_at,
            ),
            statistics=UserDetailStats(
                projects_count=len(projects),
                deployed_projects=sum(1 for p in projects if p.status == "deployed"),
                monetized_projects=len(monetized),
                total_revenue=self.synthetic.user_revenue(),
            ),
            recent_projects=[
                RecentProject(
                    id=p.id, name=p.name, status=p.status, created_at=_as_utc(p.created_at)
                )
                for p in projects[:RECENT_PROJECTS_LIMIT]
            ],
        )

    def suspend_user(self, caller_id: str, target_user_id: str, reason: str) -> None:
        self.require_admin(caller_id)
        user = self.users.get(target_user_id)
        if user is None:
            raise NotFound("User")
        self.users.set_suspension(user, True, reason, caller_id)
        logger.info(
            f"User {target_user_id} suspended: {reason}",
            extra={"user_id": caller_id},
        )

    def unsuspend_user(self, caller_id: str, target_user_id: str) -> None:
        self.require_admin(caller_id)
        user = self.users.get(target_user_id)
        if user is None:
            raise NotFound("User")
        self.users.set_suspension(user, False, None, None)
        logger.info(f"User {target_user_id} unsuspended", extra={"user_id": caller_id})

    # ── Moderation ──

    def list_reports(
        self, caller_id: str, page: int = 1, limit: int = 20, status: Optional[str] = None
    ) -> ContentReportPage:
        self.require_admin(caller_id)
        offset = _offset(page, limit)
        rows, total = self.reports.list(status, offset, limit)

        reports = []
        for r in rows:
            reporter = self.users.get(r.reporter_id)
            reports.append(
                ContentReportOut(
                    id=r.id,
                    content_type=r.content_type,
                    content_id=r.content_id,
                    reason=r.reason,
                    description=r.description,
                    reporter=(
                        UserBrief(id=reporter.id, name=reporter.name, email=reporter.email)
                        if reporter
                        else None
                    ),
                    status=r.status,
                    created_at=_as_utc(r.created_at),
                    reviewed_at=r.reviewed_at,
                    reviewed_by=r.reviewed_by,
                    resolution=r.resolution,
                )
            )

        return ContentReportPage(reports=reports, total=total, has_more=offset + limit < total)

    def review_report(
        self, caller_id: str, report_id: str, action: str, resolution: Optional[str] = None
    ) -> None:
        self.require_admin(caller_id)
        if action not in REVIEW_ACTIONS:
            raise ValidationError("Valid action is required (dismiss or resolve)")
        report = self.reports.get(report_id)
        if report is None:
            raise NotFound("Report")
        self.reports.review(report, REVIEW_ACTIONS[action], caller_id, resolution)
        logger.info(f"Content report {report_id} {action}ed", extra={"user_id": caller_id})

    # ── System ──

    def system_health(self, caller_id: str) -> SystemHealth:
        self.require_admin(caller_id)
        health = self.synthetic.system_health()
        services = health["services"]

        levels = set(services.values())
        if "critical" in levels:
            status = "critical"
        elif "warning" in levels:
            status = "warning"
        else:
            status = "healthy"

        now = self.clock()
        alerts = [
            HealthAlert(
                id="1",
                type="warning",
                message="High memory usage detected on deployment service",
                timestamp=now - timedelta(hours=2),
                resolved=False,
            ),
            HealthAlert(
                id="2",
                type="info",
                message="Scheduled maintenance completed successfully",
                timestamp=now - timedelta(days=1),
                resolved=True,
            ),
        ]

        return SystemHealth(
            status=status,
            uptime=health["uptime"],
            response_time=health["response_time"],
            error_rate=health["error_rate"],
            services=services,
            alerts=alerts,
        )

    def system_logs(
        self, caller_id: str, page: int = 1, limit: int = 50, level: Optional[str] = None
    ) -> SystemLogPage:
        self.require_admin(caller_id)
        offset = _offset(page, limit)

        logs = [SystemLog(**entry) for entry in self.synthetic.system_logs(self.clock())]
        if level:
            logs = [log for log in logs if log.level == level]

        return SystemLogPage(
            logs=logs[offset : offset + limit],
            total=len(logs),
            has_more=offset + limit < len(logs),
        )

    def revenue_trends(self, caller_id: str) -> PlatformRevenueTrends:
        self.require_admin(caller_id)
        return PlatformRevenueTrends(
            **self.synthetic.platform_revenue_trend(self.clock().date())
        )

    def deployment_stats(self, caller_id: str) -> DeploymentStats:
        self.require_admin(caller_id)
        return DeploymentStats(**self.synthetic.deployment_stats(self.clock()))
