"""Settings dos stores duráveis (credenciais e checkpoint).

Define o backend usado pelo pool de credenciais e pelo cursor de
processamento.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

StoreBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class StoreSettings:
    """Configurações de persistência.

    Attributes:
        backend: Backend dos stores (memory|redis)
        key_prefix: Namespace das chaves no Redis
        checkpoint_stream: Nome do stream lógico do checkpoint
    """

    backend: StoreBackend = "memory"
    key_prefix: str = "relay:"
    checkpoint_stream: str = "global"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de persistência.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in ("memory", "redis"):
            errors.append(f"STORE_BACKEND inválido: {self.backend}")

        if self.backend == "memory" and not base.is_development:
            errors.append(
                "STORE_BACKEND=memory proibido em staging/production. Use Redis."
            )

        if self.backend == "redis" and not base.redis_url:
            errors.append("STORE_BACKEND=redis requer REDIS_URL configurado")

        if not self.checkpoint_stream:
            errors.append("CHECKPOINT_STREAM não pode ser vazio")

        return errors


def _default_backend() -> str:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    return "redis" if environment in ("staging", "stage", "production", "prod") else "memory"


def _load_stores_from_env() -> StoreSettings:
    """Carrega StoreSettings de variáveis de ambiente."""
    backend_str = os.getenv("STORE_BACKEND", _default_backend()).lower()
    backend: StoreBackend = "redis" if backend_str == "redis" else "memory"
    return StoreSettings(
        backend=backend,
        key_prefix=os.getenv("STORE_KEY_PREFIX", "relay:"),
        checkpoint_stream=os.getenv("CHECKPOINT_STREAM", "global"),
    )


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Retorna instância cacheada de StoreSettings."""
    return _load_stores_from_env()
