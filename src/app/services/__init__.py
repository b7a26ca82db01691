"""Serviços de aplicação.

Objetos de serviço construídos uma vez no bootstrap e passados por
referência. Implementações concretas de IO ficam em app/infra/.
"""

from app.services.delivery_gate import DeliveryGate
from app.services.notify import notify_best_effort
from app.services.token_pool import TokenPool

__all__ = [
    "DeliveryGate",
    "TokenPool",
    "notify_best_effort",
]
