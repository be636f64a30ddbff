"""Monetra — AdSense API Routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from monetra.api.deps import get_adsense_service, get_bearer_token
from monetra.api.pipeline import RequestContext, run, validate_required
from monetra.core.logging import get_logger
from monetra.models.revenue_models import CamelModel
from monetra.services.adsense import AdSenseService

logger = get_logger("api.adsense")

router = APIRouter(prefix="/adsense", tags=["AdSense"])


# ── Request Models ──


class ConnectRequest(CamelModel):
    auth_code: Optional[str] = None
    """OAuth authorization code returned to the redirect URI."""


class CreateAdUnitRequest(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None
    """display | text | link"""
    size: Optional[str] = None
    """``responsive`` or ``<width>x<height>``"""


# ── Endpoints ──


@router.get("/{project_id}/oauth-url")
async def get_oauth_url(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    """Google consent URL; ``state`` carries the project id back to the callback."""
    return await run(
        RequestContext("GET /adsense/{projectId}/oauth-url", "ADSENSE_OAUTH_URL_FAILED", project_id),
        token,
        lambda caller: {"authUrl": adsense.oauth_url(project_id, caller.id)},
    )


@router.post("/{project_id}/connect", status_code=201)
async def connect_adsense_account(
    project_id: str,
    request: ConnectRequest,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    async def compute(caller):
        account = await adsense.connect(project_id, caller.id, request.auth_code)
        return {"account": account}

    return await run(
        RequestContext("POST /adsense/{projectId}/connect", "ADSENSE_CONNECT_FAILED", project_id),
        token,
        compute,
        validate=lambda: validate_required(authCode=request.auth_code),
        status_code=201,
    )


@router.get("/{project_id}/status")
async def get_adsense_status(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    return await run(
        RequestContext("GET /adsense/{projectId}/status", "ADSENSE_STATUS_FAILED", project_id),
        token,
        lambda caller: adsense.status(project_id, caller.id),
    )


@router.post("/{project_id}/ad-units", status_code=201)
async def create_ad_unit(
    project_id: str,
    request: CreateAdUnitRequest,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    async def compute(caller):
        ad_unit = await adsense.create_ad_unit(
            project_id, caller.id, request.name, request.type, request.size
        )
        return {"adUnit": ad_unit}

    return await run(
        RequestContext("POST /adsense/{projectId}/ad-units", "AD_UNIT_CREATE_FAILED", project_id),
        token,
        compute,
        validate=lambda: validate_required(name=request.name, type=request.type, size=request.size),
        status_code=201,
    )


@router.get("/{project_id}/ad-units/{ad_unit_id}/code")
async def generate_ad_code(
    project_id: str,
    ad_unit_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    return await run(
        RequestContext(
            "GET /adsense/{projectId}/ad-units/{adUnitId}/code", "AD_CODE_GENERATE_FAILED", project_id
        ),
        token,
        lambda caller: {"adCode": adsense.ad_code(project_id, caller.id, ad_unit_id)},
    )


@router.put("/{project_id}/settings")
async def update_adsense_settings(
    project_id: str,
    update: Dict[str, Any] = Body(...),
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    """Update autoAds, adDensity and excludedPages; other keys are ignored."""
    return await run(
        RequestContext(
            "PUT /adsense/{projectId}/settings", "ADSENSE_SETTINGS_UPDATE_FAILED", project_id
        ),
        token,
        lambda caller: {"config": adsense.update_settings(project_id, caller.id, update)},
    )


@router.get("/{project_id}/revenue")
async def get_revenue_data(
    project_id: str,
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    return await run(
        RequestContext("GET /adsense/{projectId}/revenue", "REVENUE_DATA_FAILED", project_id),
        token,
        lambda caller: adsense.revenue_data(project_id, caller.id, start_date, end_date),
    )


@router.delete("/{project_id}")
async def disconnect_adsense_account(
    project_id: str,
    token: Optional[str] = Depends(get_bearer_token),
    adsense: AdSenseService = Depends(get_adsense_service),
):
    return await run(
        RequestContext("DELETE /adsense/{projectId}", "ADSENSE_DISCONNECT_FAILED", project_id),
        token,
        lambda caller: adsense.disconnect(project_id, caller.id),
        message="AdSense account disconnected successfully",
    )
