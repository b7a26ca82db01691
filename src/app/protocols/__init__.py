"""Protocolos e contratos do core da aplicação."""

from .capability_probe import DeliveryCapabilityProbeProtocol
from .checkpoint_store import CheckpointStoreProtocol
from .credential_store import CredentialStoreProtocol
from .failure_listener import FailureListenerProtocol
from .item_sink import CommentSinkProtocol

__all__ = [
    "CheckpointStoreProtocol",
    "CommentSinkProtocol",
    "CredentialStoreProtocol",
    "DeliveryCapabilityProbeProtocol",
    "FailureListenerProtocol",
]
