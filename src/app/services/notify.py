"""Notificação best-effort: falha ao notificar nunca quebra o fluxo principal."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def notify_best_effort(
    callback: Callable[..., Any] | None,
    *args: Any,
    event: str = "notification",
) -> bool:
    """Invoca `callback(*args)` ignorando (e logando) qualquer falha.

    Returns:
        True se o callback executou sem erro.
    """
    if callback is None:
        return False
    try:
        callback(*args)
    except Exception as exc:
        logger.warning(
            "notify_failed",
            extra={"event": event, "error_type": type(exc).__name__, "error": str(exc)},
        )
        return False
    return True
