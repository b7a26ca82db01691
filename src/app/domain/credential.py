"""Modelo de domínio da credencial do pool rotativo.

A credencial é propriedade exclusiva do CredentialStore. Desativação é
terminal: nenhum componente do core reativa uma credencial.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

# Cota padrão de uma credencial recém-registrada (janela REST do GitHub)
DEFAULT_RATE_LIMIT: int = 5000
EPOCH: datetime = datetime.fromtimestamp(0, tz=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def mask_secret(secret: str) -> str:
    """Retorna apenas o final do segredo, seguro para logs."""
    return f"...{secret[-4:]}" if len(secret) > 4 else "..."


def secret_fingerprint(secret: str) -> str:
    """Identificador estável do segredo, usado como chave de persistência."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:32]


class Credential(BaseModel):
    """Credencial de acesso à API upstream e sua janela de rate limit."""

    model_config = ConfigDict(extra="ignore")

    secret: str = Field(..., min_length=1, repr=False)
    usage_count: int = Field(default=0, ge=0)
    last_used_at: datetime = Field(default_factory=_utcnow)
    rate_limit_remaining: int = Field(default=DEFAULT_RATE_LIMIT)
    rate_limit_reset_at: datetime = Field(default_factory=_utcnow)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def fingerprint(self) -> str:
        """Chave estável derivada do segredo."""
        return secret_fingerprint(self.secret)

    @property
    def masked(self) -> str:
        """Representação do segredo segura para logs."""
        return mask_secret(self.secret)

    def is_usable(self, now: datetime) -> bool:
        """Ativa e com cota restante, ou com janela já reiniciada."""
        if not self.is_active:
            return False
        return self.rate_limit_remaining > 0 or self.rate_limit_reset_at < now


def pick_best_credential(
    credentials: Iterable[Credential],
    now: datetime,
) -> Credential | None:
    """Seleciona a credencial utilizável com maior cota restante.

    Empates ficam com a primeira na ordem de iteração do store.
    """
    best: Credential | None = None
    for credential in credentials:
        if not credential.is_usable(now):
            continue
        if best is None or credential.rate_limit_remaining > best.rate_limit_remaining:
            best = credential
    return best
