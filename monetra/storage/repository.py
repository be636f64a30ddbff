"""Monetra — Persistence Accessors.

Thin repositories over a SQLModel session. Composers receive these instead
of touching the session directly, so tests can swap in fakes.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from sqlalchemy import func
from sqlmodel import Session, select

from monetra.models.db_models import ContentReport, Project, RevenueSnapshot, User
from monetra.models.revenue_models import (
    Connected,
    Disconnected,
    RevenueSettings,
    dump_revenue_state,
    parse_revenue_state,
)
from monetra.core.logging import get_logger

logger = get_logger("storage.repository")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def count(
        self,
        created_since: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        updated_since: Optional[datetime] = None,
    ) -> int:
        """Count users, optionally bounded by creation and activity windows."""
        query = select(func.count()).select_from(User)
        if created_since is not None:
            query = query.where(User.created_at >= created_since)
        if created_before is not None:
            query = query.where(User.created_at < created_before)
        if updated_since is not None:
            query = query.where(User.updated_at >= updated_since)
        return self.session.exec(query).one()

    def list_by_status(
        self,
        status: Optional[str],
        active_since: datetime,
        offset: int,
        limit: int,
    ) -> Tuple[List[User], int]:
        """Page through users filtered by activity status.

        ``active`` means not suspended and updated since ``active_since``;
        ``inactive`` means not suspended and idle before it.
        """
        conditions = []
        if status == "suspended":
            conditions.append(User.is_suspended == True)  # noqa: E712
        elif status == "active":
            conditions.append(User.is_suspended == False)  # noqa: E712
            conditions.append(User.updated_at >= active_since)
        elif status == "inactive":
            conditions.append(User.is_suspended == False)  # noqa: E712
            conditions.append(User.updated_at < active_since)

        query = select(User).where(*conditions).order_by(User.updated_at.desc())  # type: ignore
        users = self.session.exec(query.offset(offset).limit(limit)).all()
        total = self.session.exec(
            select(func.count()).select_from(User).where(*conditions)
        ).one()
        return list(users), total

    def set_suspension(
        self, user: User, suspended: bool, reason: Optional[str], by: Optional[str]
    ) -> User:
        user.is_suspended = suspended
        user.suspension_reason = reason if suspended else None
        user.suspended_at = _now() if suspended else None
        user.suspended_by = by if suspended else None
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user


class ProjectRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, project_id: str) -> Optional[Project]:
        return self.session.get(Project, project_id)

    def list_for_user(self, user_id: str) -> List[Project]:
        return list(
            self.session.exec(
                select(Project)
                .where(Project.user_id == user_id)
                .order_by(Project.created_at)  # type: ignore
            ).all()
        )

    def list_monetized(self, user_id: str) -> List[Project]:
        """Projects owned by ``user_id`` with a connected AdSense account."""
        return [
            p
            for p in self.list_for_user(user_id)
            if isinstance(parse_revenue_state(p.revenue_json), Connected)
        ]

    def count(
        self,
        created_since: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> int:
        query = select(func.count()).select_from(Project)
        if created_since is not None:
            query = query.where(Project.created_at >= created_since)
        if created_before is not None:
            query = query.where(Project.created_at < created_before)
        if status is not None:
            query = query.where(Project.status == status)
        return self.session.exec(query).one()

    def update_revenue(
        self, project: Project, state: Union[Connected, Disconnected]
    ) -> Project:
        """Overwrite the revenue blob. No concurrency control."""
        project.revenue_json = dump_revenue_state(state)
        project.updated_at = _now()
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project

    def update_settings(self, project: Project, settings: RevenueSettings) -> Project:
        project.settings_json = settings.model_dump_json(by_alias=True)
        project.updated_at = _now()
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project


class ContentReportRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, report_id: str) -> Optional[ContentReport]:
        return self.session.get(ContentReport, report_id)

    def list(
        self, status: Optional[str], offset: int, limit: int
    ) -> Tuple[List[ContentReport], int]:
        conditions = [ContentReport.status == status] if status else []
        reports = self.session.exec(
            select(ContentReport)
            .where(*conditions)
            .order_by(ContentReport.created_at.desc())  # type: ignore
            .offset(offset)
            .limit(limit)
        ).all()
        total = self.session.exec(
            select(func.count()).select_from(ContentReport).where(*conditions)
        ).one()
        return list(reports), total

    def review(
        self, report: ContentReport, status: str, reviewer_id: str, resolution: Optional[str]
    ) -> ContentReport:
        report.status = status
        report.reviewed_at = _now()
        report.reviewed_by = reviewer_id
        report.resolution = resolution
        self.session.add(report)
        self.session.commit()
        self.session.refresh(report)
        return report


class SnapshotRepository:
    """Cache of computed dashboards."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, project_id: str, time_range: str, payload_json: str) -> RevenueSnapshot:
        snapshot = RevenueSnapshot(
            project_id=project_id, time_range=time_range, payload_json=payload_json
        )
        self.session.add(snapshot)
        self.session.commit()
        return snapshot

    def prune(self, older_than: datetime) -> int:
        """Delete snapshots created before ``older_than``. Returns rows removed."""
        stale = self.session.exec(
            select(RevenueSnapshot).where(RevenueSnapshot.created_at < older_than)
        ).all()
        for row in stale:
            self.session.delete(row)
        self.session.commit()
        return len(stale)
