"""Gerenciamento de correlation_id para rastrear execuções.

Cada execução de poll, cada evento de webhook e cada request HTTP roda
sob um correlation_id próprio, injetado nos logs pelo CorrelationIdFilter.
Usa ContextVar para ser seguro entre tasks asyncio.

Uso:
    from app.observability import correlation_scope

    with correlation_scope("poll"):
        await poll_fn(context)
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (ou string vazia)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    value = correlation_id or generate_correlation_id()
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    """Restaura o correlation_id ao valor anterior."""
    _correlation_id.reset(token)


def generate_correlation_id(prefix: str = "") -> str:
    """Gera um novo correlation_id (UUID v4), opcionalmente prefixado."""
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value


@contextmanager
def correlation_scope(prefix: str = "") -> Iterator[str]:
    """Executa o bloco sob um correlation_id novo e restaura o anterior."""
    correlation_id = generate_correlation_id(prefix)
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)
