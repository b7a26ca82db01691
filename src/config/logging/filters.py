"""Filters de logging para injeção de contexto do relay.

Campos injetados em todo record:
- correlation_id: ID da execução corrente (ex: "poll-<uuid>", "webhook-<uuid>")
- run_kind: Tipo da execução, derivado do prefixo do correlation_id
- service: Nome do serviço (padrão: BaseSettings.service_name)
- environment: Ambiente de execução (BaseSettings.environment)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.settings.base import get_base_settings

if TYPE_CHECKING:
    from collections.abc import Callable

# Prefixos usados por correlation_scope no gate e no handler de webhook
RUN_KINDS = frozenset({"poll", "webhook"})


def run_kind_of(correlation_id: str) -> str:
    """Extrai o tipo de execução do correlation_id ("" se não prefixado)."""
    prefix, _, rest = correlation_id.partition("-")
    return prefix if rest and prefix in RUN_KINDS else ""


class CorrelationIdFilter(logging.Filter):
    """Injeta o contexto de execução do relay em cada record.

    Args:
        service_name: Nome do serviço. Se None, usa BaseSettings.service_name.
        correlation_id_getter: Função que retorna o correlation_id atual.
            Se não fornecida, usa string vazia.
        environment: Ambiente. Se None, usa BaseSettings.environment.
    """

    def __init__(
        self,
        service_name: str | None = None,
        correlation_id_getter: Callable[[], str] | None = None,
        environment: str | None = None,
    ) -> None:
        super().__init__()
        if service_name is None or environment is None:
            base = get_base_settings()
            service_name = service_name or base.service_name
            environment = environment or base.environment
        self._service_name = service_name
        self._environment = environment
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        # correlation_id explícito via `extra` tem precedência; nunca descarta
        existing = getattr(record, "correlation_id", None)
        correlation_id = existing if existing else self._get_correlation_id()
        record.correlation_id = correlation_id
        record.run_kind = run_kind_of(correlation_id)
        record.service = self._service_name
        record.environment = self._environment
        return True
