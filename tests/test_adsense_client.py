"""
Tests for the AdSense client, report transformer and revenue source adapter
"""

import json
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from monetra.connectors.adsense.client import AdSenseAPIError, AdSenseClient
from monetra.connectors.adsense.source import AdSenseRevenueSource, render_ad_code
from monetra.connectors.adsense.transformer import parse_report_rows, transform_report
from monetra.core.synthetic import SyntheticSource
from monetra.models.revenue_models import (
    AdSenseAccount,
    AdSenseConfig,
    AdSenseTokens,
    AdUnit,
    Connected,
)

BASE_URL = "https://adsense.test/v2"
START = date(2024, 1, 1)
END = date(2024, 1, 3)

REPORT = {
    "headers": [
        {"name": "DATE", "type": "DIMENSION"},
        {"name": "ESTIMATED_EARNINGS", "type": "METRIC_CURRENCY"},
        {"name": "IMPRESSIONS", "type": "METRIC_TALLY"},
        {"name": "CLICKS", "type": "METRIC_TALLY"},
    ],
    "rows": [
        {"cells": [{"value": "2024-01-02"}, {"value": "3.50"}, {"value": "500"}, {"value": "5"}]},
        {"cells": [{"value": "2024-01-01"}, {"value": "1.50"}, {"value": "500"}, {"value": "5"}]},
    ],
}


def _connected(tokens: bool = True) -> Connected:
    return Connected(
        account=AdSenseAccount(id="pub-1", name="Site"),
        config=AdSenseConfig(publisher_id="pub-1"),
        tokens=AdSenseTokens(access_token="tok") if tokens else None,
    )


def _source(handler, requests=None, now=None):
    """Revenue source whose clients talk to a mock transport."""

    def record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(record))

    def factory(access_token):
        return AdSenseClient(
            access_token=access_token, http=http, base_url=BASE_URL, retry_base_delay=0
        )

    kwargs = {"now": now} if now else {}
    source = AdSenseRevenueSource(
        SyntheticSource(seed=4), http=http, client_factory=factory, **kwargs
    )
    return source, http


# ── Transformer ──


def test_parse_report_rows_sorts_and_converts():
    points = parse_report_rows(REPORT)

    assert [p.date for p in points] == ["2024-01-01", "2024-01-02"]
    assert points[1].earnings == 3.5
    assert points[1].impressions == 500
    assert points[1].clicks == 5


def test_parse_report_rows_merges_duplicate_dates():
    raw = {
        "headers": REPORT["headers"],
        "rows": [
            {"cells": [{"value": "2024-01-01"}, {"value": "1"}, {"value": "10"}, {"value": "1"}]},
            {"cells": [{"value": "2024-01-01"}, {"value": "2"}, {"value": "20"}, {"value": "2"}]},
        ],
    }
    (point,) = parse_report_rows(raw)

    assert point.earnings == 3
    assert point.impressions == 30
    assert point.clicks == 3


def test_parse_report_without_date_header_is_empty():
    assert parse_report_rows({"headers": [{"name": "CLICKS"}], "rows": []}) == []


def test_transform_report_derives_ctr_and_cpm():
    report = transform_report(REPORT, START, END)

    assert report.total_earnings == 5
    assert report.impressions == 1000
    assert report.clicks == 10
    assert report.ctr == 1.0
    assert report.cpm == 5.0
    assert report.period == "2024-01-01 to 2024-01-03"


def test_transform_empty_report_has_zero_rates():
    report = transform_report({"headers": REPORT["headers"]}, START, END)

    assert report.daily_data == []
    assert report.ctr == 0
    assert report.cpm == 0


# ── Client ──


@pytest.mark.asyncio
async def test_generate_report_sends_metrics_and_token():
    requests = []

    def handler(request):
        return httpx.Response(200, json=REPORT)

    source, http = _source(handler, requests)
    async with http:
        report = await source.fetch_revenue("p1", _connected(), START, END)

    assert report.total_earnings == 5
    (request,) = requests
    assert request.url.path == "/v2/accounts/pub-1/reports:generate"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.url.params.get_list("metrics") == [
        "ESTIMATED_EARNINGS",
        "IMPRESSIONS",
        "CLICKS",
    ]
    assert request.url.params["startDate.day"] == "1"
    assert request.url.params["endDate.day"] == "3"


@pytest.mark.asyncio
async def test_server_errors_are_retried_then_raised():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "backend down", "status": "INTERNAL"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AdSenseClient("tok", http=http, base_url=BASE_URL, retry_base_delay=0)
        with pytest.raises(AdSenseAPIError) as exc:
            await client.list_accounts()

    assert len(calls) == 3
    assert exc.value.status_code == 500
    assert exc.value.error_code == "INTERNAL"
    assert str(exc.value) == "backend down"


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    responses = iter(
        [httpx.Response(429), httpx.Response(200, json={"accounts": [{"name": "accounts/pub-1"}]})]
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: next(responses))) as http:
        client = AdSenseClient("tok", http=http, base_url=BASE_URL, retry_base_delay=0)
        accounts = await client.list_accounts()

    assert accounts == [{"name": "accounts/pub-1"}]


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, json={"error": {"message": "no access", "status": "PERMISSION_DENIED"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AdSenseClient("tok", http=http, base_url=BASE_URL, retry_base_delay=0)
        with pytest.raises(AdSenseAPIError) as exc:
            await client.list_accounts()

    assert len(calls) == 1
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_missing_token_raises_without_request():
    client = AdSenseClient(None, base_url=BASE_URL)
    with pytest.raises(AdSenseAPIError) as exc:
        await client.list_accounts()

    assert exc.value.status_code == 401
    await client.close()


@pytest.mark.asyncio
async def test_oauth_error_string_is_parsed():
    def handler(request):
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Bad code"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AdSenseClient(http=http, base_url=BASE_URL, retry_base_delay=0)
        with pytest.raises(AdSenseAPIError) as exc:
            await client.exchange_code("bad")

    assert str(exc.value) == "Bad code"
    assert exc.value.error_code == "invalid_grant"


# ── Revenue source ──


@pytest.mark.asyncio
async def test_upstream_failure_falls_back_to_synthetic():
    source, http = _source(lambda r: httpx.Response(503))
    async with http:
        report = await source.fetch_revenue("p1", _connected(), START, END)

    assert [p.date for p in report.daily_data] == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert report.total_earnings > 0


@pytest.mark.asyncio
async def test_missing_tokens_use_synthetic_without_calling_upstream():
    requests = []
    source, http = _source(lambda r: httpx.Response(200, json=REPORT), requests)
    async with http:
        report = await source.fetch_revenue("p1", _connected(tokens=False), START, END)

    assert requests == []
    assert len(report.daily_data) == 3
    assert report.period == "2024-01-01 to 2024-01-03"


@pytest.mark.asyncio
async def test_connect_exchanges_code_and_resolves_account():
    def handler(request):
        if request.url.host == "oauth2.googleapis.com":
            assert b"code=good" in request.content
            return httpx.Response(
                200, json={"access_token": "new-tok", "refresh_token": "r", "expires_in": 3600}
            )
        assert request.headers["Authorization"] == "Bearer new-tok"
        return httpx.Response(
            200,
            json={"accounts": [{"name": "accounts/pub-77", "displayName": "My Site", "currencyCode": "EUR"}]},
        )

    source, http = _source(handler)
    async with http:
        account, tokens = await source.connect("good")

    assert account.id == "pub-77"
    assert account.name == "My Site"
    assert account.currency == "EUR"
    assert tokens.access_token == "new-tok"
    assert tokens.refresh_token == "r"
    assert tokens.expires_at is not None


@pytest.mark.asyncio
async def test_connect_without_accounts_raises():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"access_token": "t"})
        return httpx.Response(200, json={})

    source, http = _source(handler)
    async with http:
        with pytest.raises(AdSenseAPIError):
            await source.connect("code")


@pytest.mark.asyncio
async def test_create_ad_unit_returns_embed_code():
    requests = []

    def handler(request):
        return httpx.Response(
            200,
            json={
                "name": "accounts/pub-1/adclients/ca-pub-1/adunits/1234",
                "displayName": "Sidebar",
                "state": "ACTIVE",
            },
        )

    source, http = _source(handler, requests)
    async with http:
        unit = await source.create_ad_unit(_connected(), "Sidebar", "link", "300x250")

    (request,) = requests
    assert request.url.path == "/v2/accounts/pub-1/adclients/ca-pub-1/adunits"
    assert json.loads(request.content)["contentAdsSettings"]["type"] == "IN_FEED"
    assert unit.id == "1234"
    assert unit.type == "link"
    assert 'data-ad-slot="1234"' in unit.code
    assert "width:300px;height:250px" in unit.code


def test_render_ad_code_responsive():
    code = render_ad_code("pub-5", AdUnit(id="9", name="Top"))

    assert 'data-ad-client="ca-pub-5"' in code
    assert 'data-ad-format="auto"' in code
    assert "<!-- Top -->" in code


# ── Token refresh ──

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


def _connected_with_expiry(expires_at: datetime) -> Connected:
    return Connected(
        account=AdSenseAccount(id="pub-1"),
        config=AdSenseConfig(publisher_id="pub-1"),
        tokens=AdSenseTokens(access_token="old", refresh_token="refresh-1", expires_at=expires_at),
    )


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_before_report():
    requests = []

    def handler(request):
        if request.url.host == "oauth2.googleapis.com":
            return httpx.Response(200, json={"access_token": "fresh", "expires_in": 3600})
        return httpx.Response(200, json=REPORT)

    state = _connected_with_expiry(NOW - timedelta(minutes=1))
    source, http = _source(handler, requests, now=lambda: NOW)
    async with http:
        report = await source.fetch_revenue("p1", state, START, END)

    refresh, fetch = requests
    assert b"grant_type=refresh_token" in refresh.content
    assert b"refresh_token=refresh-1" in refresh.content
    assert fetch.headers["Authorization"] == "Bearer fresh"
    assert report.total_earnings == 5
    assert state.tokens.access_token == "fresh"
    assert state.tokens.refresh_token == "refresh-1"
    assert state.tokens.expires_at == NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_valid_token_is_not_refreshed():
    requests = []
    state = _connected_with_expiry(NOW + timedelta(minutes=30))
    tokens = state.tokens

    source, http = _source(lambda r: httpx.Response(200, json=REPORT), requests, now=lambda: NOW)
    async with http:
        await source.fetch_revenue("p1", state, START, END)

    (request,) = requests
    assert request.headers["Authorization"] == "Bearer old"
    assert state.tokens is tokens


@pytest.mark.asyncio
async def test_failed_refresh_falls_back_to_synthetic():
    def handler(request):
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Revoked"})

    state = _connected_with_expiry(NOW - timedelta(minutes=1))
    source, http = _source(handler, now=lambda: NOW)
    async with http:
        report = await source.fetch_revenue("p1", state, START, END)

    assert len(report.daily_data) == 3
    assert state.tokens.access_token == "old"
