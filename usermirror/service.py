"""HTTP triggers for the sync and remediation passes."""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

import anyio
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings, resolve_config_path
from .engine import SyncEngine, build_engine

logger = logging.getLogger("usermirror.service")


class SyncResponse(BaseModel):
    success: bool
    total: int = Field(..., ge=0, description="Number of users present in the directory")
    error: Optional[str] = None


class RemediationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    disabled_count: int = Field(..., ge=0, alias="disabledCount")
    failed: List[str] = Field(default_factory=list)
    error: Optional[str] = None


def register_routes(app: FastAPI, engine: SyncEngine) -> None:
    """Expose the engine operations on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/sync-users", response_model=SyncResponse)
    async def sync_users():
        result = await anyio.to_thread.run_sync(engine.sync)
        payload = SyncResponse(success=result.success, total=result.total, error=result.error)
        if not result.success:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=payload.model_dump(),
            )
        return payload

    @app.post("/users/auto-disable-suspicious", response_model=RemediationResponse)
    async def auto_disable_suspicious():
        result = await anyio.to_thread.run_sync(engine.auto_disable_suspicious)
        payload = RemediationResponse(
            success=result.success,
            disabled_count=result.disabled_count,
            failed=list(result.failed),
            error=result.error,
        )
        if not result.success:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=payload.model_dump(by_alias=True),
            )
        if result.failed:
            logger.warning("%d suspicious user(s) could not be disabled", len(result.failed))
        return payload


def create_app(
    *,
    engine: SyncEngine | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the HTTP application wrapping a :class:`SyncEngine`."""

    if engine is None:
        resolved = settings or load_settings(resolve_config_path(os.getenv("USERMIRROR_CONFIG")))
        engine = build_engine(resolved)

    app = FastAPI(
        title="User Mirror",
        version="0.1.0",
        description="Directory sync and suspicious-account remediation triggers.",
    )
    app.state.engine = engine

    register_routes(app, engine)
    return app


__all__ = ["RemediationResponse", "SyncResponse", "create_app", "register_routes"]
