"""
Exports públicos do módulo fsm/manager.

Máquina de estados do modo de entrega.
"""

from fsm.manager.machine import (
    DEFAULT_HISTORY_SIZE,
    DeliveryModeMachine,
)

__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "DeliveryModeMachine",
]
