"""
Shared fixtures: in-memory database, factories, fixed clock and an HTTP client
wired through the app's dependency overrides.
"""

import json
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from monetra.api import deps
from monetra.core.security import create_access_token
from monetra.core.synthetic import SyntheticSource
from monetra.database import build_engine, get_session, init_db
from monetra.main import app
from monetra.models.db_models import ContentReport, Project, User
from monetra.models.revenue_models import (
    AdSenseAccount,
    AdSenseConfig,
    AdSenseTokens,
    AdUnit,
    Connected,
    DailyRevenuePoint,
    RevenueReport,
    dump_revenue_state,
)

FIXED_NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class StubRevenueSource:
    """Revenue source double: canned reports per project, optional failures."""

    def __init__(
        self,
        reports: Optional[Dict[str, RevenueReport]] = None,
        default: Optional[RevenueReport] = None,
        failing: tuple = (),
    ):
        self.reports = reports or {}
        self.default = default or RevenueReport()
        self.failing = set(failing)
        self.calls: List[tuple] = []

    async def fetch_revenue(self, project_id, state, start: date, end: date) -> RevenueReport:
        self.calls.append((project_id, start, end))
        if project_id in self.failing:
            raise RuntimeError("upstream exploded")
        return self.reports.get(project_id, self.default)


def make_report(points: List[tuple]) -> RevenueReport:
    """Build a report from (date, earnings[, impressions, clicks]) tuples."""
    daily = [
        DailyRevenuePoint(
            date=p[0],
            earnings=p[1],
            impressions=p[2] if len(p) > 2 else 0,
            clicks=p[3] if len(p) > 3 else 0,
        )
        for p in points
    ]
    total = sum(p.earnings for p in daily)
    impressions = sum(p.impressions for p in daily)
    clicks = sum(p.clicks for p in daily)
    return RevenueReport(
        earnings=total,
        impressions=impressions,
        clicks=clicks,
        ctr=clicks / impressions * 100 if impressions else 0.0,
        cpm=total / impressions * 1000 if impressions else 0.0,
        total_earnings=total,
        daily_data=daily,
    )


# ── Database ──


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def synthetic():
    return SyntheticSource(seed=1234)


# ── Factories ──


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(
        role: str = "user",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        **kwargs,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=kwargs.pop("email", f"user{n}@example.com"),
            name=kwargs.pop("name", f"User {n}"),
            role=role,
            created_at=created_at or FIXED_NOW - timedelta(days=100),
            updated_at=updated_at or FIXED_NOW - timedelta(days=1),
            **kwargs,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


def connected_blob(
    ad_units: int = 0, tokens: bool = False, publisher_id: str = "pub-1"
) -> str:
    state = Connected(
        account=AdSenseAccount(id=publisher_id, name="Test Site"),
        config=AdSenseConfig(
            publisher_id=publisher_id,
            ad_units=[AdUnit(id=f"unit-{i}", name=f"Unit {i}") for i in range(ad_units)],
        ),
        tokens=AdSenseTokens(access_token="access-token") if tokens else None,
    )
    return dump_revenue_state(state)


@pytest.fixture
def make_project(session):
    counter = {"n": 0}

    def _make(
        user: User,
        connected: bool = False,
        ad_units: int = 0,
        revenue_json: Optional[str] = None,
        created_at: Optional[datetime] = None,
        **kwargs,
    ) -> Project:
        counter["n"] += 1
        n = counter["n"]
        if revenue_json is None:
            revenue_json = (
                connected_blob(ad_units)
                if connected
                else json.dumps({"adsenseEnabled": False})
            )
        project = Project(
            user_id=user.id,
            name=kwargs.pop("name", f"Project {n}"),
            revenue_json=revenue_json,
            created_at=created_at or FIXED_NOW - timedelta(days=50) + timedelta(minutes=n),
            **kwargs,
        )
        session.add(project)
        session.commit()
        session.refresh(project)
        return project

    return _make


@pytest.fixture
def make_report_row(session):
    def _make(reporter: User, status: str = "pending", **kwargs) -> ContentReport:
        report = ContentReport(
            content_type=kwargs.pop("content_type", "post"),
            content_id=kwargs.pop("content_id", "post-1"),
            reason=kwargs.pop("reason", "spam"),
            reporter_id=reporter.id,
            status=status,
            **kwargs,
        )
        session.add(report)
        session.commit()
        session.refresh(report)
        return report

    return _make


# ── Auth ──


def token_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def normal_user(make_user):
    return make_user()


@pytest.fixture
def admin_user(make_user):
    return make_user(role="admin")


@pytest.fixture
def normal_user_token_headers(normal_user):
    return token_headers(normal_user)


@pytest.fixture
def admin_token_headers(admin_user):
    return token_headers(admin_user)


# ── HTTP ──


@pytest.fixture
def revenue_source():
    return StubRevenueSource()


@pytest.fixture
async def client(session, synthetic, revenue_source):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[deps.get_synthetic] = lambda: synthetic
    app.dependency_overrides[deps.get_clock] = lambda: fixed_clock
    app.dependency_overrides[deps.get_revenue_source] = lambda: revenue_source

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
