"""Liveness endpoint reporting the state of the service's dependencies."""

import asyncio
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel

from resetgate.infrastructure.database.async_db import check_database_health
from resetgate.infrastructure.redis import check_redis_health

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    services: Dict[str, str]
    timestamp: datetime


async def _database_status(request: Request) -> str:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return "disabled"
    return "ok" if await check_database_health(engine) else "unavailable"


async def _redis_status(request: Request) -> str:
    client = getattr(request.app.state, "redis", None)
    if client is None:
        return "disabled"
    return "ok" if await check_redis_health(client) else "unavailable"


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Report overall status plus one entry per dependency.

    The service is ``ok`` only while every enabled dependency answers.
    """
    db_status, redis_status = await asyncio.gather(_database_status(request), _redis_status(request))
    services = {"database": db_status, "redis": redis_status}
    overall = "degraded" if "unavailable" in services.values() else "ok"

    return HealthResponse(
        status=overall,
        env=request.app.state.settings.APP_ENV,
        services=services,
        timestamp=datetime.now(timezone.utc),
    )
