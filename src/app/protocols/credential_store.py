"""Protocolo do store durável de credenciais."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.credential import Credential


class CredentialStoreProtocol(ABC):
    """Contrato assíncrono do CredentialStore.

    Cada método corresponde a uma única ida ao armazenamento durável.
    Não há lock em processo: aquisições concorrentes podem escolher a
    mesma credencial, e o rate limit upstream é o limite real.
    """

    @abstractmethod
    async def add(self, credential: Credential) -> None:
        """Registra credencial nova.

        Raises:
            DuplicateCredentialError: Se o segredo já está registrado.
        """

    @abstractmethod
    async def select_available(self, now: datetime) -> Credential | None:
        """Retorna a melhor credencial utilizável (ver pick_best_credential)."""

    @abstractmethod
    async def record_usage(
        self,
        secret: str,
        remaining: int,
        reset_at: datetime,
        used_at: datetime,
    ) -> None:
        """Incrementa usage_count e sobrescreve a janela de rate limit."""

    @abstractmethod
    async def deactivate(self, secret: str) -> None:
        """Marca a credencial como inativa (idempotente)."""

    @abstractmethod
    async def get(self, secret: str) -> Credential | None:
        """Retorna a credencial registrada para o segredo."""

    @abstractmethod
    async def count_active(self) -> int:
        """Quantidade de credenciais ativas."""
