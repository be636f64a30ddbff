"""Monetra — Database Models."""

import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Platform account. ``updated_at`` doubles as the last-activity marker."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str = Field(default="")
    avatar: Optional[str] = Field(default=None)
    role: str = Field(default="user", description="user | admin")
    created_at: datetime = Field(default_factory=_now, index=True)
    updated_at: datetime = Field(default_factory=_now, index=True)
    is_suspended: bool = Field(default=False)
    suspension_reason: Optional[str] = Field(default=None)
    suspended_at: Optional[datetime] = Field(default=None)
    suspended_by: Optional[str] = Field(default=None)


class Project(SQLModel, table=True):
    """A monetizable AI service app.

    ``revenue_json`` holds the AdSense connection blob; parse it with
    ``monetra.models.revenue_models.parse_revenue_state``.
    """

    __tablename__ = "projects"

    id: str = Field(default_factory=_uuid, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    name: str
    status: str = Field(default="developing", description="developing | deployed | archived")
    revenue_json: str = Field(default='{"adsenseEnabled": false}')
    settings_json: Optional[str] = Field(
        default=None, description="Revenue optimization settings"
    )
    created_at: datetime = Field(default_factory=_now, index=True)
    updated_at: datetime = Field(default_factory=_now)


class ContentReport(SQLModel, table=True):
    """A user-filed moderation report against a post, comment or project."""

    __tablename__ = "content_reports"

    id: str = Field(default_factory=_uuid, primary_key=True)
    content_type: str = Field(description="post | comment | project")
    content_id: str
    reason: str
    description: Optional[str] = Field(default=None)
    reporter_id: str = Field(index=True, foreign_key="users.id")
    status: str = Field(default="pending", index=True)
    created_at: datetime = Field(default_factory=_now)
    reviewed_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None)
    resolution: Optional[str] = Field(default=None)


class RevenueSnapshot(SQLModel, table=True):
    """Best-effort cache of a computed dashboard. Never read as authoritative."""

    __tablename__ = "revenue_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: str = Field(index=True)
    time_range: str
    created_at: datetime = Field(default_factory=_now, index=True)
    payload_json: str = Field(description="Full DashboardSnapshot as JSON")
