"""FastAPI app serving the notification endpoints from a mock backend."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from notifysync.backend.store import BackendFailure, MockNotificationBackend
from notifysync.core.types import SessionUser


class ReadNotificationRequest(BaseModel):
    id: list[str]

    @field_validator("id", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class _Unauthorized(Exception):
    pass


def _envelope(data: Any, message: str = "") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def _current_user(request: Request) -> SessionUser:
    backend: MockNotificationBackend = request.app.state.backend
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    user = backend.user_for_token(token) if scheme.lower() == "bearer" else None
    if user is None:
        raise _Unauthorized()
    return user


def create_app(backend: MockNotificationBackend | None = None) -> FastAPI:
    """Build the app. ``app.state.backend`` holds the store for test assertions."""
    app = FastAPI(title="notifysync mock backend")
    app.state.backend = backend or MockNotificationBackend()

    @app.exception_handler(_Unauthorized)
    async def _unauthorized(request: Request, exc: _Unauthorized) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Unauthorized access.", "data": None},
        )

    @app.exception_handler(BackendFailure)
    async def _failure(request: Request, exc: BackendFailure) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": str(exc), "data": None},
        )

    @app.get("/notification")
    async def list_notifications(
        request: Request, user: SessionUser = Depends(_current_user)
    ) -> dict[str, Any]:
        rows = request.app.state.backend.list_for_user(user.user_id)
        return _envelope([d.model_dump(mode="json", by_alias=True) for d in rows])

    @app.get("/notification/unread-count")
    async def unread_count(
        request: Request, user: SessionUser = Depends(_current_user)
    ) -> dict[str, Any]:
        return _envelope(request.app.state.backend.unread_count(user.user_id))

    @app.patch("/notification/read-notification")
    async def read_notification(
        body: ReadNotificationRequest,
        request: Request,
        user: SessionUser = Depends(_current_user),
    ) -> dict[str, Any]:
        changed = request.app.state.backend.mark_read(user.user_id, body.id)
        return _envelope({"updated": changed}, message="")

    return app
