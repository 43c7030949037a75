from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse


router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def keep_alive() -> str:
    return "OK"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
