"""Endpoints de health check (liveness e readiness)."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from app.bootstrap.dependencies import RelayServices

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "github-relay"


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "degraded", "failed"]
    latency_ms: float | None = None
    error: str | None = None
    detail: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe — verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: store de credenciais, credenciais e gate."""
    services: RelayServices | None = getattr(request.app.state, "services", None)

    credentials_check = await _check_credentials(services)
    gate_check = _check_gate(services)
    ready = credentials_check.status == "ok" and gate_check.status == "ok"

    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "credentials": credentials_check.as_dict(),
            "delivery_gate": gate_check.as_dict(),
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)


async def _check_credentials(services: RelayServices | None) -> DependencyCheck:
    if services is None:
        return DependencyCheck(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        active = await asyncio.wait_for(services.token_pool.count_active(), timeout=2.0)
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        logger.warning("readiness_credentials_check_failed", extra={"error_type": type(exc).__name__})
        return DependencyCheck(status="failed", error=type(exc).__name__)
    latency_ms = round((time.perf_counter() - started_at) * 1000, 2)

    app_fallback = services.app_client is not None
    detail = {"active_credentials": active, "app_fallback": app_fallback}
    if active > 0 or app_fallback:
        return DependencyCheck(status="ok", latency_ms=latency_ms, detail=detail)
    return DependencyCheck(
        status="failed",
        latency_ms=latency_ms,
        error="no_credentials",
        detail=detail,
    )


def _check_gate(services: RelayServices | None) -> DependencyCheck:
    if services is None:
        return DependencyCheck(status="failed", error="not_configured")
    summary = services.gate.summary()
    if not summary["initialized"]:
        return DependencyCheck(status="failed", error="not_initialized", detail=summary)
    return DependencyCheck(status="ok", detail=summary)
