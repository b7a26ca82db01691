"""Taxonomia fechada de erros da API GitHub.

Cada falha é classificada uma única vez, no ponto em que ocorre, em uma
das variantes abaixo. O executor decide retry por tipo, nunca pelo
formato do erro.
"""

from __future__ import annotations

import httpx


class UpstreamError(Exception):
    """Base de todos os erros do acesso à API upstream."""


class UpstreamApiError(UpstreamError):
    """Resposta não-2xx (exceto 302/304) da API upstream."""

    def __init__(self, status: int, status_text: str, message: str = "") -> None:
        self.status = status
        self.status_text = status_text
        self.message = message or f"GitHub API error: {status} {status_text}"
        super().__init__(self.message)


class InvalidCredentialError(UpstreamApiError):
    """401: credencial rejeitada pelo upstream."""


class QuotaExceededError(UpstreamApiError):
    """403: cota da credencial esgotada."""


class TransientNetworkError(UpstreamError):
    """Falha de rede transitória (reset, timeout, DNS)."""


class PoolExhaustedError(UpstreamError):
    """Nenhuma credencial utilizável e nenhum fallback viável."""

    def __init__(self, message: str = "No GitHub tokens available") -> None:
        super().__init__(message)


class AppAuthError(UpstreamError):
    """Falha na autenticação como GitHub App (JWT, instalação ou token)."""


class RetriesExhaustedError(UpstreamError):
    """Todas as tentativas falharam com erros recuperáveis."""

    def __init__(self, target: str, attempts: int) -> None:
        self.target = target
        self.attempts = attempts
        super().__init__(f"Failed to fetch {target} after {attempts} attempts")


def api_error_from_status(status: int, status_text: str, message: str = "") -> UpstreamApiError:
    """Constrói a variante tipada correspondente ao status HTTP."""
    if status == 401:
        return InvalidCredentialError(status, status_text, message)
    if status == 403:
        return QuotaExceededError(status, status_text, message)
    return UpstreamApiError(status, status_text, message)


def classify_transport_error(exc: Exception) -> TransientNetworkError | None:
    """Mapeia exceções de transporte do httpx para TransientNetworkError.

    Returns:
        TransientNetworkError se a falha é de rede transitória, None caso
        contrário (o chamador propaga o erro original).
    """
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return TransientNetworkError(f"{type(exc).__name__}: {exc}")
    return None
