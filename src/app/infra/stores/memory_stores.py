"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios
e sem compartilhamento entre instâncias.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.credential import Credential, pick_best_credential
from app.protocols.checkpoint_store import CheckpointStoreProtocol
from app.protocols.credential_store import CredentialStoreProtocol
from utils.errors import DuplicateCredentialError

if TYPE_CHECKING:
    from datetime import datetime


class MemoryCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em memória — apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, Credential] = {}  # secret -> credential (ordem de registro)

    async def add(self, credential: Credential) -> None:
        if credential.secret in self._store:
            raise DuplicateCredentialError(f"Credencial {credential.masked} já registrada")
        self._store[credential.secret] = credential.model_copy()

    async def select_available(self, now: datetime) -> Credential | None:
        best = pick_best_credential(self._store.values(), now)
        return best.model_copy() if best else None

    async def record_usage(
        self,
        secret: str,
        remaining: int,
        reset_at: datetime,
        used_at: datetime,
    ) -> None:
        credential = self._store.get(secret)
        if credential is None:
            return
        credential.usage_count += 1
        credential.last_used_at = used_at
        credential.rate_limit_remaining = remaining
        credential.rate_limit_reset_at = reset_at

    async def deactivate(self, secret: str) -> None:
        credential = self._store.get(secret)
        if credential is not None:
            credential.is_active = False

    async def get(self, secret: str) -> Credential | None:
        credential = self._store.get(secret)
        return credential.model_copy() if credential else None

    async def count_active(self) -> int:
        return sum(1 for credential in self._store.values() if credential.is_active)


class MemoryCheckpointStore(CheckpointStoreProtocol):
    """Cursor de processamento em memória — apenas para dev/test."""

    def __init__(self, initial: int | None = None) -> None:
        self._last_processed_id = initial

    async def get(self, default: int = 0) -> int:
        if self._last_processed_id is None:
            return default
        return self._last_processed_id

    async def set(self, item_id: int) -> bool:
        # Sem await entre leitura e escrita: atômico no event loop
        if self._last_processed_id is not None and item_id <= self._last_processed_id:
            return False
        self._last_processed_id = item_id
        return True
