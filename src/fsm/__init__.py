"""
Módulo FSM — Máquina de estados do modo de entrega.

Governa a escolha entre polling ativo e webhooks, com override temporário
de polling após falhas no caminho push.

Estrutura:
    - states/: Modos de entrega (DeliveryMode enum)
    - transitions/: Regras de transição (VALID_TRANSITIONS)
    - manager/: Máquina de estados (DeliveryModeMachine)
    - types/: Tipos de dados (ModeTransition, TransitionResult)
"""

# Manager
from fsm.manager import (
    DEFAULT_HISTORY_SIZE,
    DeliveryModeMachine,
)

# Estados
from fsm.states import (
    POLLING_MODES,
    DeliveryMode,
    initial_mode,
    is_polling_mode,
)

# Transições
from fsm.transitions import (
    VALID_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)

# Types
from fsm.types import (
    ModeTransition,
    TransitionResult,
)

__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "POLLING_MODES",
    # Transições
    "VALID_TRANSITIONS",
    # Estados
    "DeliveryMode",
    # Manager
    "DeliveryModeMachine",
    # Types
    "ModeTransition",
    "TransitionResult",
    "get_valid_targets",
    "initial_mode",
    "is_polling_mode",
    "is_transition_valid",
    "validate_transition_map",
]
