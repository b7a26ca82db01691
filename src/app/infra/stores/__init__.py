"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - memory_stores: Stores em memória para desenvolvimento/testes
    - redis_credential_store: Pool de credenciais usando Redis
    - redis_checkpoint_store: Cursor de processamento usando Redis
"""

from __future__ import annotations

from app.infra.stores.memory_stores import (
    MemoryCheckpointStore,
    MemoryCredentialStore,
)
from app.infra.stores.redis_checkpoint_store import RedisCheckpointStore
from app.infra.stores.redis_credential_store import RedisCredentialStore

__all__ = [
    # Memory (dev/test)
    "MemoryCheckpointStore",
    "MemoryCredentialStore",
    # Redis
    "RedisCheckpointStore",
    "RedisCredentialStore",
]
