"""Monetra — Request Pipeline.

Every endpoint runs the same four stages:

    validate  →  authorize  →  compute  →  serialize

Each stage is a plain function so it can be tested on its own. ``run`` chains
them and translates any failure into the error envelope with the endpoint's
error code::

    {"success": true, "data": ...}
    {"success": false, "error": {"message": ..., "code": ...}}
"""

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.responses import Response

from monetra.core.errors import AppError, Unauthorized, ValidationError
from monetra.core.logging import get_logger
from monetra.core.security import decode_access_token

logger = get_logger("api.pipeline")


@dataclass(frozen=True)
class Caller:
    id: str
    role: str = "user"


@dataclass
class RequestContext:
    endpoint: str
    error_code: str
    project_id: Optional[str] = None


Compute = Callable[[Caller], Union[Any, Awaitable[Any]]]


# ── Validate ──


def validate_required(**fields: Any) -> None:
    """Raise ValidationError naming the first missing (None or empty) field."""
    for name, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required")


def validate_choice(value: str, choices: Iterable[str], field: str) -> str:
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(f"Invalid {field} '{value}'. Use one of: {', '.join(choices)}")
    return value


# ── Authorize ──


def authorize(token: Optional[str]) -> Caller:
    """Resolve the bearer token to a caller. Role checks belong to the services."""
    if not token:
        raise Unauthorized()
    payload = decode_access_token(token)
    return Caller(id=payload["sub"], role=payload.get("role", "user"))


# ── Serialize ──


def serialize(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, list):
        return [serialize(item) for item in data]
    if isinstance(data, dict):
        return {key: serialize(value) for key, value in data.items()}
    return jsonable_encoder(data)


def success_envelope(data: Any = None, status_code: int = 200, message: Optional[str] = None) -> JSONResponse:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = serialize(data)
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def error_envelope(message: str, code: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message, "code": code}},
    )


# ── Runner ──


async def run(
    ctx: RequestContext,
    token: Optional[str],
    compute: Compute,
    validate: Optional[Callable[[], Any]] = None,
    status_code: int = 200,
    message: Optional[str] = None,
) -> Response:
    """Run one request through the pipeline and return the HTTP response.

    ``compute`` may return a model, plain data, ``None`` (message-only reply) or a
    ready-made ``Response`` which is passed through untouched.
    """
    started = time.perf_counter()
    caller: Optional[Caller] = None
    try:
        if validate is not None:
            validate()
        caller = authorize(token)
        result = compute(caller)
        if inspect.isawaitable(result):
            result = await result
    except AppError as e:
        _log_failure(ctx, caller, e.status_code, e, started)
        return error_envelope(e.message, ctx.error_code, e.status_code)
    except Exception as e:
        _log_failure(ctx, caller, 500, e, started)
        return error_envelope(str(e), ctx.error_code, 500)

    logger.info(
        f"{ctx.endpoint} OK",
        extra={
            "endpoint": ctx.endpoint,
            "user_id": caller.id,
            "project_id": ctx.project_id,
            "status_code": status_code,
            "duration_ms": _elapsed_ms(started),
        },
    )
    if isinstance(result, Response):
        return result
    return success_envelope(result, status_code, message)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _log_failure(
    ctx: RequestContext, caller: Optional[Caller], status_code: int, error: Exception, started: float
) -> None:
    extra = {
        "endpoint": ctx.endpoint,
        "user_id": caller.id if caller else None,
        "project_id": ctx.project_id,
        "status_code": status_code,
        "error_code": ctx.error_code,
        "duration_ms": _elapsed_ms(started),
    }
    if status_code >= 500:
        logger.error(f"{ctx.endpoint} failed: {error}", exc_info=error, extra=extra)
    else:
        logger.warning(f"{ctx.endpoint} rejected: {error}", extra=extra)
