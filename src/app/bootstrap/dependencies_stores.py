"""Factories de stores baseadas em configuração de ambiente."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client
from app.infra.stores import (
    MemoryCheckpointStore,
    MemoryCredentialStore,
    RedisCheckpointStore,
    RedisCredentialStore,
)

if TYPE_CHECKING:
    from app.protocols.checkpoint_store import CheckpointStoreProtocol
    from app.protocols.credential_store import CredentialStoreProtocol
    from config.settings import BaseSettings, StoreSettings

logger = logging.getLogger(__name__)


def _warn_memory_outside_dev(base: BaseSettings, store: str) -> None:
    if not base.is_development:
        logger.warning(
            "memory_store_in_non_dev",
            extra={"store": store, "environment": base.environment},
        )


def create_credential_store(
    base: BaseSettings,
    stores: StoreSettings,
) -> CredentialStoreProtocol:
    """Cria o store de credenciais conforme STORE_BACKEND."""
    if stores.backend == "redis":
        client = create_async_redis_client(base.redis_url)
        logger.info("credential_store_created", extra={"backend": "redis"})
        return RedisCredentialStore(client, prefix=stores.key_prefix)

    if stores.backend == "memory":
        _warn_memory_outside_dev(base, "credential")
        logger.info("credential_store_created", extra={"backend": "memory"})
        return MemoryCredentialStore()

    msg = f"STORE_BACKEND inválido: {stores.backend}"
    raise ValueError(msg)


def create_checkpoint_store(
    base: BaseSettings,
    stores: StoreSettings,
) -> CheckpointStoreProtocol:
    """Cria o store de checkpoint conforme STORE_BACKEND."""
    if stores.backend == "redis":
        client = create_async_redis_client(base.redis_url)
        logger.info("checkpoint_store_created", extra={"backend": "redis"})
        return RedisCheckpointStore(
            client,
            stream=stores.checkpoint_stream,
            prefix=stores.key_prefix,
        )

    if stores.backend == "memory":
        _warn_memory_outside_dev(base, "checkpoint")
        logger.info("checkpoint_store_created", extra={"backend": "memory"})
        return MemoryCheckpointStore()

    msg = f"STORE_BACKEND inválido: {stores.backend}"
    raise ValueError(msg)
