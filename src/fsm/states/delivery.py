"""
Modos de entrega do DeliveryGate.

O modo decide se atualizações chegam por polling ativo ou por webhooks
(entrega passiva), com override temporário quando o caminho passivo falha.
"""

from enum import StrEnum


class DeliveryMode(StrEnum):
    """
    Modos de entrega.

    Estados:
        - WEBHOOK_PRIMARY: Integração push instalada; timer não faz polling
        - POLLING_PRIMARY: Sem integração push; polling a cada tick
        - TEMPORARY_POLLING: Polling de recuperação com prazo, após falha
          detectada no caminho push
    """

    WEBHOOK_PRIMARY = "WEBHOOK_PRIMARY"
    POLLING_PRIMARY = "POLLING_PRIMARY"
    TEMPORARY_POLLING = "TEMPORARY_POLLING"

    def __str__(self) -> str:
        return self.value


# Modos em que o timer invoca a função de polling
POLLING_MODES: frozenset[DeliveryMode] = frozenset({
    DeliveryMode.POLLING_PRIMARY,
    DeliveryMode.TEMPORARY_POLLING,
})


def initial_mode(push_delivery_installed: bool) -> DeliveryMode:
    """Modo inicial a partir da sonda de capacidade."""
    if push_delivery_installed:
        return DeliveryMode.WEBHOOK_PRIMARY
    return DeliveryMode.POLLING_PRIMARY


def is_polling_mode(mode: DeliveryMode) -> bool:
    return mode in POLLING_MODES
