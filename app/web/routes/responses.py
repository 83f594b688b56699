"""Translate service results into the JSON envelope used by every API route."""
from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.results import ErrorKind, OperationResult

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INACTIVE_ENTITY: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_FUNDS: 422,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_PERMITTED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _serialize(data: Any, schema: type[BaseModel] | None) -> Any:
    if schema is None or data is None:
        return data
    if isinstance(data, list):
        return [schema.model_validate(item).model_dump(mode="json") for item in data]
    return schema.model_validate(data).model_dump(mode="json")


def ok_response(data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


def error_response(kind: ErrorKind, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"success": False, "error": error, "kind": kind.value},
    )


def result_response(
    result: OperationResult,
    schema: type[BaseModel] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Render an OperationResult, validating ``data`` through ``schema``."""
    if not result.success:
        return error_response(result.kind or ErrorKind.INTERNAL_ERROR, result.error or "")
    return ok_response(_serialize(result.data, schema), status_code=status_code)
