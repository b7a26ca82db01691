"""Settings do controlador de entrega (polling vs. webhook).

Intervalos e janelas são parâmetros operacionais: o valor correto depende
da confiabilidade observada dos webhooks upstream.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class DeliverySettings:
    """Configurações do DeliveryGate.

    Attributes:
        poll_interval_seconds: Intervalo do timer de polling
        temporary_polling_seconds: Duração da janela de polling temporário
        capability_recheck_seconds: Intervalo de re-sondagem da integração
            push (0 desativa)
        webhook_stale_after_seconds: Silêncio máximo de webhooks antes de
            ativar polling temporário (0 desativa)
        temporary_max_empty_polls: Passadas vazias consecutivas que encerram
            o polling temporário antes do prazo (0 desativa)
    """

    poll_interval_seconds: float = 60.0
    temporary_polling_seconds: float = 15 * 60.0
    capability_recheck_seconds: float = 10 * 60.0
    webhook_stale_after_seconds: float = 0.0
    temporary_max_empty_polls: int = 2

    def validate(self) -> list[str]:
        """Valida intervalos do controlador.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.poll_interval_seconds <= 0:
            errors.append("DELIVERY_POLL_INTERVAL_SECONDS deve ser > 0")

        # A janela precisa cobrir ao menos um ciclo de entrega perdido
        if self.temporary_polling_seconds < self.poll_interval_seconds:
            errors.append(
                "DELIVERY_TEMPORARY_POLLING_SECONDS deve ser >= "
                "DELIVERY_POLL_INTERVAL_SECONDS"
            )

        if self.capability_recheck_seconds < 0:
            errors.append("DELIVERY_CAPABILITY_RECHECK_SECONDS deve ser >= 0")

        if self.webhook_stale_after_seconds < 0:
            errors.append("DELIVERY_WEBHOOK_STALE_AFTER_SECONDS deve ser >= 0")

        if self.temporary_max_empty_polls < 0:
            errors.append("DELIVERY_TEMPORARY_MAX_EMPTY_POLLS deve ser >= 0")

        return errors


def _load_from_env() -> DeliverySettings:
    """Carrega DeliverySettings a partir de variáveis de ambiente."""
    return DeliverySettings(
        poll_interval_seconds=float(os.getenv("DELIVERY_POLL_INTERVAL_SECONDS", "60")),
        temporary_polling_seconds=float(
            os.getenv("DELIVERY_TEMPORARY_POLLING_SECONDS", "900")
        ),
        capability_recheck_seconds=float(
            os.getenv("DELIVERY_CAPABILITY_RECHECK_SECONDS", "600")
        ),
        webhook_stale_after_seconds=float(
            os.getenv("DELIVERY_WEBHOOK_STALE_AFTER_SECONDS", "0")
        ),
        temporary_max_empty_polls=int(
            os.getenv("DELIVERY_TEMPORARY_MAX_EMPTY_POLLS", "2")
        ),
    )


@lru_cache(maxsize=1)
def get_delivery_settings() -> DeliverySettings:
    """Retorna instância cacheada de DeliverySettings."""
    return _load_from_env()
