from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from users_service.utils.response import failure, success

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return success({"ok": True}, message="healthy")


@router.get("/health/ready")
async def ready(request: Request):
    mongo = getattr(request.app.state, "mongo", None)
    if mongo is None or not await mongo.ping():
        return JSONResponse(status_code=503, content=failure("database unavailable"))
    return success({"ok": True}, message="ready")
