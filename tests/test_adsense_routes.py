"""
HTTP-level tests for the AdSense router
"""

from urllib.parse import parse_qs, urlparse

import pytest

from conftest import StubRevenueSource, connected_blob, make_report
from monetra.connectors.adsense.client import AdSenseAPIError
from monetra.connectors.adsense.source import render_ad_code
from monetra.models.revenue_models import (
    AdSenseAccount,
    AdSenseTokens,
    AdUnit,
    Connected,
    parse_revenue_state,
)


class FakeAdSenseSource(StubRevenueSource):
    """Account lifecycle double on top of the canned revenue source."""

    def __init__(self):
        super().__init__(default=make_report([("2024-01-01", 2.0)]))
        self.connect_error = None

    async def connect(self, auth_code):
        if self.connect_error:
            raise self.connect_error
        return (
            AdSenseAccount(id="pub-42", name="Fresh Site"),
            AdSenseTokens(access_token="tok", refresh_token="ref"),
        )

    async def create_ad_unit(self, state: Connected, name, unit_type, size):
        unit = AdUnit(id="slot-1", name=name, type=unit_type, size=size)
        unit.code = render_ad_code(state.config.publisher_id, unit)
        return unit


@pytest.fixture
def revenue_source():
    return FakeAdSenseSource()


@pytest.mark.asyncio
async def test_oauth_url_carries_project_state(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user)

    response = await client.get(
        f"/adsense/{project.id}/oauth-url", headers=normal_user_token_headers
    )

    assert response.status_code == 200
    url = urlparse(response.json()["data"]["authUrl"])
    query = parse_qs(url.query)
    assert url.netloc == "accounts.google.com"
    assert query["state"] == [project.id]
    assert query["access_type"] == ["offline"]
    assert "https://www.googleapis.com/auth/adsense" in query["scope"][0].split(" ")


@pytest.mark.asyncio
async def test_connect_stores_account_and_tokens(
    client, session, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user)

    response = await client.post(
        f"/adsense/{project.id}/connect",
        json={"authCode": "code-1"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["account"]["id"] == "pub-42"
    session.refresh(project)
    state = parse_revenue_state(project.revenue_json)
    assert isinstance(state, Connected)
    assert state.config.publisher_id == "pub-42"
    assert state.tokens.refresh_token == "ref"


@pytest.mark.asyncio
async def test_connect_requires_auth_code(client, normal_user, normal_user_token_headers, make_project):
    project = make_project(normal_user)

    response = await client.post(
        f"/adsense/{project.id}/connect", json={}, headers=normal_user_token_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == {
        "message": "authCode is required",
        "code": "ADSENSE_CONNECT_FAILED",
    }


@pytest.mark.asyncio
async def test_connect_upstream_failure_is_502(
    client, normal_user, normal_user_token_headers, make_project, revenue_source
):
    project = make_project(normal_user)
    revenue_source.connect_error = AdSenseAPIError("invalid_grant", 400)

    response = await client.post(
        f"/adsense/{project.id}/connect",
        json={"authCode": "stale"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 502
    assert response.json()["error"]["message"] == "AdSense: invalid_grant"


@pytest.mark.asyncio
async def test_status_and_disconnect(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user, connected=True, ad_units=1)

    response = await client.get(f"/adsense/{project.id}/status", headers=normal_user_token_headers)
    data = response.json()["data"]
    assert data["connected"] is True
    assert data["account"]["id"] == "pub-1"
    assert [u["id"] for u in data["adUnits"]] == ["unit-0"]

    response = await client.delete(f"/adsense/{project.id}", headers=normal_user_token_headers)
    assert response.json() == {
        "success": True,
        "message": "AdSense account disconnected successfully",
    }

    response = await client.get(f"/adsense/{project.id}/status", headers=normal_user_token_headers)
    assert response.json()["data"] == {"connected": False, "account": None, "adUnits": []}


@pytest.mark.asyncio
async def test_create_ad_unit_and_fetch_code(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user, connected=True)

    response = await client.post(
        f"/adsense/{project.id}/ad-units",
        json={"name": "Sidebar", "type": "display", "size": "300x250"},
        headers=normal_user_token_headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["adUnit"]["id"] == "slot-1"

    response = await client.get(
        f"/adsense/{project.id}/ad-units/slot-1/code", headers=normal_user_token_headers
    )
    assert response.status_code == 200
    assert 'data-ad-slot="slot-1"' in response.json()["data"]["adCode"]

    response = await client.get(
        f"/adsense/{project.id}/ad-units/nope/code", headers=normal_user_token_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_ad_unit_rejects_unknown_type(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user, connected=True)

    response = await client.post(
        f"/adsense/{project.id}/ad-units",
        json={"name": "Banner", "type": "video", "size": "responsive"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "AD_UNIT_CREATE_FAILED"


@pytest.mark.asyncio
async def test_ad_units_need_a_connected_account(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user)

    response = await client.post(
        f"/adsense/{project.id}/ad-units",
        json={"name": "Banner", "type": "display", "size": "responsive"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 400
    assert "not connected" in response.json()["error"]["message"]


@pytest.mark.asyncio
async def test_settings_only_touch_editable_keys(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user, revenue_json=connected_blob(publisher_id="pub-3"))

    response = await client.put(
        f"/adsense/{project.id}/settings",
        json={"autoAds": True, "adDensity": "high", "publisherId": "pub-evil"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 200
    config = response.json()["data"]["config"]
    assert config["autoAds"] is True
    assert config["adDensity"] == "high"
    assert config["publisherId"] == "pub-3"


@pytest.mark.asyncio
async def test_revenue_defaults_to_last_seven_days(
    client, normal_user, normal_user_token_headers, make_project, revenue_source
):
    project = make_project(normal_user, connected=True)

    response = await client.get(f"/adsense/{project.id}/revenue", headers=normal_user_token_headers)

    assert response.status_code == 200
    assert response.json()["data"]["totalEarnings"] == 2
    (_, start, end), = revenue_source.calls
    assert start.isoformat() == "2023-12-26"
    assert end.isoformat() == "2024-01-02"


@pytest.mark.asyncio
async def test_revenue_rejects_inverted_range(
    client, normal_user, normal_user_token_headers, make_project
):
    project = make_project(normal_user, connected=True)

    response = await client.get(
        f"/adsense/{project.id}/revenue",
        params={"startDate": "2024-01-05", "endDate": "2024-01-01"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "REVENUE_DATA_FAILED"


@pytest.mark.asyncio
async def test_revenue_rejects_range_longer_than_a_year(
    client, normal_user, normal_user_token_headers, make_project, revenue_source
):
    project = make_project(normal_user, connected=True)

    response = await client.get(
        f"/adsense/{project.id}/revenue",
        params={"startDate": "1900-01-01", "endDate": "2024-01-02"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Date range must not exceed 366 days"
    assert revenue_source.calls == []


@pytest.mark.asyncio
async def test_revenue_accepts_a_full_year(
    client, normal_user, normal_user_token_headers, make_project, revenue_source
):
    project = make_project(normal_user, connected=True)

    response = await client.get(
        f"/adsense/{project.id}/revenue",
        params={"startDate": "2023-01-01", "endDate": "2024-01-01"},
        headers=normal_user_token_headers,
    )

    assert response.status_code == 200
    assert len(revenue_source.calls) == 1
