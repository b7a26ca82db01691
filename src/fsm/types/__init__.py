"""
Exports públicos do módulo fsm/types.

Tipos e estruturas de dados para transições de modo.
"""

from fsm.types.transition import ModeTransition, TransitionResult

__all__ = [
    "ModeTransition",
    "TransitionResult",
]
