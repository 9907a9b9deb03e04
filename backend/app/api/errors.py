"""HTTP error mapping helpers for API routes."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from fastapi import Request
from fastapi.responses import JSONResponse

from app.rooms.registry import RoomResult

# Expected room outcomes -> HTTP status.
ROOM_ERROR_STATUS: dict[str, int] = {
    "ROOM_NOT_FOUND": 404,
    "ROOM_FULL": 409,
    "PLAYER_NOT_IN_ROOM": 403,
    "NOT_YOUR_TURN": 409,
    "GAME_ALREADY_FINISHED": 409,
    "GAME_NOT_STARTED": 409,
    "COLUMN_FULL": 400,
    "INVALID_MOVE": 400,
}


def api_error(*, code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a unified API error payload."""
    return {"code": code, "message": message, "detail": detail or {}}


def raise_api_error(
    *,
    status_code: int,
    code: str,
    message: str,
    detail: dict[str, Any],
) -> None:
    raise HTTPException(
        status_code=status_code,
        detail=api_error(code=code, message=message, detail=detail),
    )


def raise_room_not_found(room_id: str) -> None:
    raise_api_error(
        status_code=404,
        code="ROOM_NOT_FOUND",
        message="room not found",
        detail={"room_id": room_id},
    )


def raise_for_result(result: RoomResult, *, room_id: str) -> None:
    """Turn a failed RoomResult into an HTTPException; no-op on success."""
    if result.success:
        return
    code = result.code or "ROOM_ERROR"
    raise_api_error(
        status_code=ROOM_ERROR_STATUS.get(code, 400),
        code=code,
        message=result.message,
        detail={"room_id": room_id},
    )


async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    """Unify HTTP errors to {code,message,detail} payload."""
    if isinstance(exc.detail, dict) and {"code", "message", "detail"} <= set(exc.detail):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=exc.headers,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=api_error(
            code="HTTP_ERROR",
            message=str(exc.detail),
            detail={},
        ),
        headers=exc.headers,
    )
