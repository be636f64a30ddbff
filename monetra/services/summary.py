"""Monetra — Revenue Summary Aggregator."""

from typing import List, Optional

from monetra.core.logging import get_logger
from monetra.models.revenue_models import ActivityEntry, RevenueSummary, TopProject
from monetra.services.dashboard import Clock, RevenueDashboardComposer, utc_now
from monetra.storage.repository import ProjectRepository

logger = get_logger("services.summary")

SUMMARY_TIME_RANGE = "30d"
RECENT_ACTIVITY_LIMIT = 5


class RevenueSummaryAggregator:
    """Folds the 30-day dashboards of a user's monetized projects into one summary.

    Projects are composed one at a time. A project whose dashboard fails is
    logged and left out of every total except ``active_projects``.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        dashboards: RevenueDashboardComposer,
        clock: Clock = utc_now,
    ):
        self.projects = projects
        self.dashboards = dashboards
        self.clock = clock

    async def compose_summary(self, user_id: str) -> RevenueSummary:
        monetized = self.projects.list_monetized(user_id)

        total_earnings = 0.0
        monthly_earnings = 0.0
        top_project: Optional[TopProject] = None
        activity: List[ActivityEntry] = []

        for project in monetized:
            try:
                dashboard = await self.dashboards.compose_dashboard(
                    project.id, user_id, SUMMARY_TIME_RANGE
                )
            except Exception as e:
                logger.warning(
                    f"Failed to get revenue data for project {project.id}: {e}",
                    extra={"project_id": project.id, "user_id": user_id},
                )
                continue

            total_earnings += dashboard.total_earnings
            monthly_earnings += dashboard.monthly_earnings

            if top_project is None or dashboard.total_earnings > top_project.earnings:
                top_project = TopProject(
                    id=project.id, name=project.name, earnings=dashboard.total_earnings
                )

            activity.append(
                ActivityEntry(
                    project_id=project.id,
                    project_name=project.name,
                    earnings=dashboard.daily_earnings,
                    date=self.clock().isoformat(),
                )
            )

        activity.sort(key=lambda a: a.earnings, reverse=True)

        return RevenueSummary(
            total_earnings=total_earnings,
            monthly_earnings=monthly_earnings,
            active_projects=len(monetized),
            top_project=top_project,
            recent_activity=activity[:RECENT_ACTIVITY_LIMIT],
        )
