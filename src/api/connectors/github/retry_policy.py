"""Política de retry como função pura de (tentativa, erro) -> decisão."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from api.connectors.github.github_errors import (
    InvalidCredentialError,
    QuotaExceededError,
    TransientNetworkError,
)

Backoff = Callable[[int], float]


@dataclass(frozen=True)
class RetryDecision:
    """Resultado da política para uma tentativa que falhou."""

    retry: bool
    delay_seconds: float = 0.0
    deactivate: bool = False


def linear_backoff(base_delay_seconds: float) -> Backoff:
    """Atraso base * número da tentativa (1, 2, 3...)."""

    def backoff(attempt: int) -> float:
        return base_delay_seconds * attempt

    return backoff


def decide_retry(
    attempt: int,
    max_attempts: int,
    error: Exception,
    backoff: Backoff,
) -> RetryDecision:
    """Decide se a tentativa `attempt` (1-based) deve ser repetida.

    - InvalidCredentialError: desativa a credencial; retry se houver tentativas
    - QuotaExceededError: retry imediato com outra credencial
    - TransientNetworkError: retry após backoff
    - Demais erros: sem retry
    """
    has_attempts_left = attempt < max_attempts
    if isinstance(error, InvalidCredentialError):
        return RetryDecision(retry=has_attempts_left, deactivate=True)
    if isinstance(error, QuotaExceededError):
        return RetryDecision(retry=has_attempts_left)
    if isinstance(error, TransientNetworkError):
        if not has_attempts_left:
            return RetryDecision(retry=False)
        return RetryDecision(retry=True, delay_seconds=backoff(attempt))
    return RetryDecision(retry=False)


def is_recoverable(error: Exception) -> bool:
    """Erros tratados por retry dentro do executor."""
    return isinstance(error, (InvalidCredentialError, QuotaExceededError, TransientNetworkError))
