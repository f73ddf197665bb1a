"""JSON envelope shared by every endpoint.

Success: ``{"success": true, "data": ..., "message": ...}``.
Error:   ``{"success": false, "error": {"statusCode": ..., "message": ...}}``.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..models import CamelModel


def _encode(data: Any) -> Any:
    if isinstance(data, CamelModel):
        return data.to_json_dict()
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {key: _encode(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_encode(item) for item in data]
    return jsonable_encoder(data)


def success(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": _encode(data), "message": message},
    )


def error(message: str = "Internal Server Error", status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"statusCode": status_code, "message": message},
        },
    )
