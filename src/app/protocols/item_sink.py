"""Protocolo do destino dos itens novos (ex.: publicador em chat)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from api.connectors.github.models import CommitComment


class CommentSinkProtocol(ABC):
    """Recebe cada comentário novo, em ordem crescente de id.

    Uma exceção interrompe a passada; o checkpoint fica no último item
    entregue com sucesso.
    """

    @abstractmethod
    async def deliver(self, comment: CommitComment, repository: str) -> None:
        """Entrega um comentário."""
