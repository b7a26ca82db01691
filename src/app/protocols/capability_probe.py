"""Protocolo da sonda de capacidade de entrega push."""

from __future__ import annotations

from typing import Protocol


class DeliveryCapabilityProbeProtocol(Protocol):
    """Informa se a integração push (webhook) está instalada para o recurso."""

    async def is_push_delivery_installed(self) -> bool: ...
