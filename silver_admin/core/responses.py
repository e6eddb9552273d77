"""
Standardized API response envelope

Every endpoint answers with:
    {success, statusCode, message, data?, meta?, timestamp}
Keys whose value is None are dropped.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def build_envelope(
    status_code: int,
    success: bool,
    message: str,
    data: Any = None,
    meta: Optional[dict] = None,
) -> dict:
    body = {
        "success": success,
        "statusCode": status_code,
        "message": message,
        "data": data,
        "meta": meta,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return {k: v for k, v in body.items() if v is not None}


def api_response(
    status_code: int,
    message: str,
    data: Any = None,
    meta: Optional[dict] = None,
) -> JSONResponse:
    """Build an envelope JSONResponse; success is derived from the status code."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            build_envelope(status_code, status_code < 400, message, data, meta)
        ),
    )


def success(message: str = "Success", data: Any = None, meta: Optional[dict] = None) -> JSONResponse:
    return api_response(200, message, data, meta)


def created(message: str = "Created successfully", data: Any = None, meta: Optional[dict] = None) -> JSONResponse:
    return api_response(201, message, data, meta)


def error(status_code: int, message: str, errors: Any = None) -> JSONResponse:
    return api_response(status_code, message, errors)
