"""Protocolo do cursor durável de processamento."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CheckpointStoreProtocol(ABC):
    """Contrato assíncrono do CheckpointStore.

    Invariante: last_processed_id só avança. set() com id menor ou igual
    ao atual é ignorado.
    """

    @abstractmethod
    async def get(self, default: int = 0) -> int:
        """Retorna last_processed_id, ou default se nunca definido."""

    @abstractmethod
    async def set(self, item_id: int) -> bool:
        """Avança o cursor. Retorna True se avançou."""
