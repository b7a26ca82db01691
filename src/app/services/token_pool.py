"""Token Pool — seleção da melhor credencial e bookkeeping de rate limit.

Sem lock em processo: cada acquire/record_usage é uma única ida ao
CredentialStore. Aquisições concorrentes podem escolher a mesma
credencial; o rate limit upstream é o limite real.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from app.domain.credential import Credential, mask_secret
from app.services.clock import Clock, utc_now
from utils.errors import DuplicateCredentialError

if TYPE_CHECKING:
    from datetime import datetime

    from app.protocols.credential_store import CredentialStoreProtocol

logger = logging.getLogger(__name__)


class TokenPool:
    """Pool rotativo de credenciais sobre um CredentialStore durável."""

    def __init__(self, store: CredentialStoreProtocol, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def acquire(self) -> Credential | None:
        """Retorna a credencial com maior cota restante, ou None."""
        credential = await self._store.select_available(self._clock())
        if credential is None:
            logger.warning("token_pool_exhausted")
            return None
        logger.debug(
            "token_acquired",
            extra={
                "token": credential.masked,
                "rate_limit_remaining": credential.rate_limit_remaining,
            },
        )
        return credential

    async def record_usage(self, secret: str, remaining: int, reset_at: datetime) -> None:
        await self._store.record_usage(secret, remaining, reset_at, self._clock())

    async def deactivate(self, secret: str) -> None:
        """Desativa a credencial de forma irreversível (idempotente)."""
        await self._store.deactivate(secret)
        logger.warning("token_deactivated", extra={"token": mask_secret(secret)})

    async def add(self, secret: str) -> bool:
        """Registra credencial com cota padrão.

        Returns:
            True se registrada, False se já existia (duplicata é reportada,
            não propagada).
        """
        now = self._clock()
        credential = Credential(
            secret=secret,
            last_used_at=now,
            rate_limit_reset_at=now,
            created_at=now,
        )
        try:
            await self._store.add(credential)
        except DuplicateCredentialError:
            logger.debug("token_already_registered", extra={"token": credential.masked})
            return False
        logger.info("token_registered", extra={"token": credential.masked})
        return True

    async def initialize(self, secrets: Iterable[str]) -> int:
        """Registra os segredos na ordem recebida (primário primeiro).

        Returns:
            Quantidade de credenciais ativas após o registro.
        """
        for secret in secrets:
            if secret:
                await self.add(secret)
        active = await self._store.count_active()
        logger.info("token_pool_initialized", extra={"active_tokens": active})
        return active

    async def count_active(self) -> int:
        return await self._store.count_active()
