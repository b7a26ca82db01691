"""
Tipos e estruturas de dados para transições de modo de entrega.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fsm.states.delivery import DeliveryMode


@dataclass(frozen=True, slots=True)
class ModeTransition:
    """
    Registro imutável de uma mudança de modo.

    Attributes:
        from_mode: Modo de origem
        to_mode: Modo de destino
        trigger: Gatilho (ex: 'webhook_received', 'temporary_polling_expired')
        metadata: Dados adicionais para observabilidade
        timestamp: Momento da transição (UTC)
    """

    from_mode: DeliveryMode
    to_mode: DeliveryMode
    trigger: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(UTC)
    )

    def __post_init__(self) -> None:
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

    def to_log_dict(self) -> dict[str, Any]:
        """Representação para logs estruturados."""
        return {
            "from_mode": self.from_mode.name,
            "to_mode": self.to_mode.name,
            "trigger": self.trigger,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi aplicada
        transition: Dados da transição (se success=True)
        error_reason: Motivo da recusa (se success=False)
    """

    success: bool
    transition: ModeTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        """Valida consistência do resultado."""
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
