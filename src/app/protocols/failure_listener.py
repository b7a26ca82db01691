"""Protocolo do receptor de sinais de falha (implementado pelo DeliveryGate)."""

from __future__ import annotations

from typing import Protocol


class FailureListenerProtocol(Protocol):
    """Recebe falhas do caminho de entrega; nunca deve propagar exceções."""

    def handle_transient_error(self, error: BaseException) -> None: ...

    def handle_processing_error(self, error: BaseException) -> None: ...
