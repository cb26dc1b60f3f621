from __future__ import annotations

from typing import Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .errors import WikiError


class MoveWarning(BaseModel):
    store: str
    error: str


class MoveResponse(BaseModel):
    success: bool
    message: str
    newPath: Optional[str] = None
    oldPath: Optional[str] = None
    warnings: Optional[list[MoveWarning]] = None


def emit(
    success: bool,
    message: str,
    status_code: int,
    new_path: str | None = None,
    old_path: str | None = None,
    warnings: list[dict[str, str]] | None = None,
) -> JSONResponse:
    body = MoveResponse(
        success=success,
        message=message,
        newPath=new_path or None,
        oldPath=old_path or None,
        warnings=[MoveWarning(**w) for w in warnings] if warnings else None,
    )
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


def emit_error(exc: WikiError) -> JSONResponse:
    return emit(False, exc.message, exc.status_code)
