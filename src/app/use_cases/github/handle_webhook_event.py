"""Use case: reação do core a um evento de webhook já verificado.

A verificação de assinatura acontece fora do core; aqui só chega o
resultado ("um evento autêntico chegou").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from api.connectors.github.models import CommitComment
from app.observability import correlation_scope
from app.services.notify import notify_best_effort

if TYPE_CHECKING:
    from app.services.delivery_gate import DeliveryGate
    from app.use_cases.github.poll_commit_comments import CommitCommentPoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookEventResult:
    """Resultado do processamento de um evento de webhook."""

    event: str
    handled: bool
    delivered: int = 0
    error: str | None = None


async def handle_verified_webhook_event(
    gate: DeliveryGate,
    poller: CommitCommentPoller,
    event: str,
    payload: dict[str, Any],
) -> WebhookEventResult:
    """Marca o webhook no gate e processa o evento.

    - commit_comment/created: entrega o comentário (se acima do checkpoint)
    - push: dispara uma passada de polling com checkpoint
    - ping: apenas registra

    Falhas de processamento são reportadas ao gate, que entra em polling
    temporário; o evento é descartado e a próxima janela de polling cobre
    o mesmo intervalo.
    """
    notify_best_effort(gate.webhook_received, event="webhook_received")

    with correlation_scope("webhook"):
        try:
            delivered = await _dispatch(gate, poller, event, payload)
        except Exception as exc:
            logger.error(
                "webhook_processing_failed",
                extra={"event": event, "error_type": type(exc).__name__, "error": str(exc)},
            )
            # request_immediate_poll já reporta a própria falha ao gate
            if event != "push":
                notify_best_effort(gate.handle_processing_error, exc, event="processing_error")
            return WebhookEventResult(event=event, handled=False, error=type(exc).__name__)

    if delivered is None:
        logger.debug("webhook_event_ignored", extra={"event": event})
        return WebhookEventResult(event=event, handled=False)
    return WebhookEventResult(event=event, handled=True, delivered=delivered)


async def _dispatch(
    gate: DeliveryGate,
    poller: CommitCommentPoller,
    event: str,
    payload: dict[str, Any],
) -> int | None:
    if event == "ping":
        logger.info("webhook_ping", extra={"zen": payload.get("zen")})
        return 0

    if event == "commit_comment":
        if payload.get("action") != "created":
            return None
        comment = CommitComment.model_validate(payload.get("comment") or {})
        return 1 if await poller.process_single(comment) else 0

    if event == "push":
        return await gate.request_immediate_poll()

    return None
