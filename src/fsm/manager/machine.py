"""
Máquina de estados do modo de entrega (DeliveryModeMachine).

Transições são atualizações puras de estado, sem I/O: podem ser
invocadas em qualquer intercalação entre tasks asyncio.
"""

from collections import deque
from datetime import datetime
from typing import Any

from fsm.states.delivery import DeliveryMode, is_polling_mode
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import ModeTransition, TransitionResult

# Histórico limitado: o processo pode rodar indefinidamente
DEFAULT_HISTORY_SIZE = 50


class DeliveryModeMachine:
    """
    Máquina de estados do modo de entrega.

    Attributes:
        current_mode: Modo atual
        history: Últimas transições realizadas
        transition_count: Total de transições desde a criação
    """

    __slots__ = ("_current_mode", "_history", "_transition_count")

    def __init__(
        self,
        initial_mode: DeliveryMode = DeliveryMode.WEBHOOK_PRIMARY,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._current_mode = initial_mode
        self._history: deque[ModeTransition] = deque(maxlen=history_size)
        self._transition_count = 0

    @property
    def current_mode(self) -> DeliveryMode:
        return self._current_mode

    @property
    def history(self) -> list[ModeTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def transition_count(self) -> int:
        return self._transition_count

    @property
    def is_polling(self) -> bool:
        return is_polling_mode(self._current_mode)

    def can_transition_to(self, target: DeliveryMode) -> bool:
        return is_transition_valid(self._current_mode, target)

    def get_valid_targets(self) -> frozenset[DeliveryMode]:
        return get_valid_targets(self._current_mode)

    def transition(
        self,
        target: DeliveryMode,
        trigger: str,
        metadata: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de modo.

        Args:
            target: Modo de destino
            trigger: Identificador do gatilho
            metadata: Dados adicionais para observabilidade
            timestamp: Momento da transição (padrão: agora, UTC)

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._current_mode, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_mode.name} → {target.name}"
                ),
            )

        extra: dict[str, Any] = {}
        if timestamp is not None:
            extra["timestamp"] = timestamp
        transition = ModeTransition(
            from_mode=self._current_mode,
            to_mode=target,
            trigger=trigger,
            metadata=metadata or {},
            **extra,
        )

        self._current_mode = target
        self._history.append(transition)
        self._transition_count += 1

        return TransitionResult(success=True, transition=transition)

    def get_state_summary(self) -> dict[str, Any]:
        """Resumo do modo atual para observabilidade."""
        return {
            "current_mode": self._current_mode.name,
            "is_polling": self.is_polling,
            "transition_count": self._transition_count,
            "valid_targets": sorted(m.name for m in self.get_valid_targets()),
        }

    def get_history_summary(self) -> list[dict[str, Any]]:
        return [t.to_log_dict() for t in self._history]

    def reset(self, new_mode: DeliveryMode) -> None:
        """
        Reposiciona a máquina sem registrar transição.

        Usado apenas na inicialização, após a sonda de capacidade.
        """
        self._current_mode = new_mode
        self._history.clear()
        self._transition_count = 0
