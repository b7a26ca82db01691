"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    DuplicateCredentialError,
    InfrastructureError,
    RedisConnectionError,
)

__all__ = [
    "DuplicateCredentialError",
    "InfrastructureError",
    "RedisConnectionError",
]
