"""Autenticação como GitHub App (fallback quando o pool está vazio).

Fluxo:
    1. JWT RS256 assinado com a chave privada do App (validade ~9 min)
    2. Installation id do repositório (cacheado por owner/repo)
    3. Installation access token (cacheado até 30s antes de expirar)
    4. Requisição com Authorization: Bearer <installation token>
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import ValidationError

from api.connectors.github.github_errors import AppAuthError
from api.connectors.github.http_base import HttpClientConfig, send_request
from api.connectors.github.models import InstallationResponse, InstallationTokenResponse
from api.connectors.github.request_builder import (
    ACCEPT_APP,
    ACCEPT_PREVIEW,
    resolve_url,
)

if TYPE_CHECKING:
    import httpx

    from config.settings import GitHubSettings

logger = logging.getLogger(__name__)

JWT_BACKDATE = timedelta(seconds=60)
JWT_LIFETIME = timedelta(minutes=9)
TOKEN_REFRESH_MARGIN = timedelta(seconds=30)
DEFAULT_TOKEN_LIFETIME = timedelta(minutes=50)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GitHubAppClient:
    """Cliente de autenticação como instalação de GitHub App.

    Args:
        settings: GitHubSettings com app_id e app_private_key
        http_config: Configuração do transporte HTTP
        clock: Fonte de tempo (injetável em testes)
    """

    def __init__(
        self,
        settings: GitHubSettings,
        http_config: HttpClientConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._http = http_config or HttpClientConfig(
            timeout_seconds=settings.request_timeout_seconds
        )
        self._clock = clock
        self._private_key: rsa.RSAPrivateKey | None = None
        self._installation_ids: dict[str, int] = {}
        self._tokens: dict[int, tuple[str, datetime]] = {}

    @property
    def configured(self) -> bool:
        return self._settings.app_configured

    def _load_key(self) -> rsa.RSAPrivateKey:
        if self._private_key is None:
            try:
                key = serialization.load_pem_private_key(
                    self._settings.app_private_key.encode("utf-8"),
                    password=None,
                )
            except ValueError as exc:
                raise AppAuthError("Chave privada do GitHub App inválida") from exc
            if not isinstance(key, rsa.RSAPrivateKey):
                raise AppAuthError("Chave privada do GitHub App deve ser RSA")
            self._private_key = key
        return self._private_key

    def build_jwt(self) -> str:
        """Gera JWT RS256 do App (iat backdatado 60s, expira em 9 min)."""
        if not self.configured:
            raise AppAuthError("GITHUB_APP_ID ou chave privada não configurados")

        now = int(self._clock().timestamp())
        payload = {
            "iat": now - int(JWT_BACKDATE.total_seconds()),
            "exp": now + int(JWT_LIFETIME.total_seconds()),
            "iss": int(self._settings.app_id),
        }
        return jwt.encode(payload, self._load_key(), algorithm="RS256")

    def _app_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.build_jwt()}",
            "Accept": ACCEPT_APP,
            "User-Agent": self._settings.user_agent,
        }

    async def get_installation_id(self, owner: str, repo: str) -> int | None:
        """Installation id do App no repositório, ou None se não instalado."""
        cache_key = f"{owner}/{repo}"
        if cache_key in self._installation_ids:
            return self._installation_ids[cache_key]

        url = resolve_url(self._settings.api_base_url, f"/repos/{owner}/{repo}/installation")
        response = await send_request(self._http, "GET", url, headers=self._app_headers())
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise AppAuthError(
                f"Falha ao consultar instalação de {cache_key}: "
                f"{response.status_code} {response.reason_phrase}"
            )
        try:
            installation = InstallationResponse.model_validate(response.json())
        except (ValidationError, ValueError):
            logger.warning("github_app_installation_unparseable", extra={"repository": cache_key})
            return None

        self._installation_ids[cache_key] = installation.id
        return installation.id

    async def get_installation_token(self, installation_id: int) -> str:
        """Token de instalação, reutilizado enquanto válido."""
        now = self._clock()
        cached = self._tokens.get(installation_id)
        if cached and cached[1] - TOKEN_REFRESH_MARGIN > now:
            return cached[0]

        url = resolve_url(
            self._settings.api_base_url,
            f"/app/installations/{installation_id}/access_tokens",
        )
        response = await send_request(self._http, "POST", url, headers=self._app_headers())
        if not response.is_success:
            raise AppAuthError(
                f"Falha ao criar token de instalação: "
                f"{response.status_code} {response.reason_phrase}"
            )
        try:
            data = InstallationTokenResponse.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            raise AppAuthError("Resposta de token de instalação inválida") from exc

        expires_at = data.expires_at or now + DEFAULT_TOKEN_LIFETIME
        self._tokens[installation_id] = (data.token, expires_at)
        logger.info(
            "github_app_token_issued",
            extra={"installation_id": installation_id, "expires_at": expires_at.isoformat()},
        )
        return data.token

    async def fetch_as_app(
        self,
        url: str,
        owner: str,
        repo: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        preview: bool = False,
    ) -> httpx.Response:
        """Executa a requisição autenticado como instalação do App."""
        if not self.configured:
            raise AppAuthError("GitHub App não configurado")

        installation_id = await self.get_installation_id(owner, repo)
        if installation_id is None:
            raise AppAuthError(f"GitHub App não está instalado em {owner}/{repo}")

        token = await self.get_installation_token(installation_id)
        merged = {
            **(headers or {}),
            "Authorization": f"Bearer {token}",
            "Accept": ACCEPT_PREVIEW if preview else ACCEPT_APP,
            "User-Agent": self._settings.user_agent,
        }
        return await send_request(
            self._http,
            method,
            url,
            headers=merged,
            params=params,
            json=json_body,
        )
