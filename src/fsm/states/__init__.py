"""
Exports públicos do módulo fsm/states.

Modos de entrega do DeliveryGate.
"""

from fsm.states.delivery import (
    POLLING_MODES,
    DeliveryMode,
    initial_mode,
    is_polling_mode,
)

__all__ = [
    "POLLING_MODES",
    "DeliveryMode",
    "initial_mode",
    "is_polling_mode",
]
