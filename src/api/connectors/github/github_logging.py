"""Helpers de logging para a API GitHub (sem segredos)."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Corpo de erro truncado para não poluir os logs
_MAX_BODY_CHARS = 500


def log_upstream_failure(
    target: str,
    status: int,
    status_text: str,
    body: str,
    token: str | None = None,
) -> None:
    """Loga falha upstream. Corpo omitido para 403 (rate limit)."""
    extra: dict[str, object] = {
        "target": target,
        "status_code": status,
        "status_text": status_text,
        "token": token,
    }
    if status != 403:
        extra["body"] = body[:_MAX_BODY_CHARS]
    logger.warning("github_api_error", extra=extra)


def log_retry(target: str, attempt: int, error: Exception, delay_seconds: float) -> None:
    logger.info(
        "github_request_retry",
        extra={
            "target": target,
            "attempt": attempt,
            "error_type": type(error).__name__,
            "delay_seconds": delay_seconds,
        },
    )


def log_success(method: str, target: str, status_code: int, via: str = "token") -> None:
    """Loga sucesso sem expor dados sensíveis."""
    logger.debug(
        "github_request_ok",
        extra={
            "method": method,
            "target": target,
            "status_code": status_code,
            "auth": via,
        },
    )
