"""Factories de clientes externos — Redis e GitHub."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from api.connectors.github.app_auth import GitHubAppClient
from api.connectors.github.http_base import HttpClientConfig

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

    from config.settings import GitHubSettings

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Redis Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_async_redis_client(redis_url: str) -> AsyncRedis[bytes]:
    """Cria cliente Redis assíncrono (singleton por URL).

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis[bytes] = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    logger.info("async_redis_client_created")
    return client


# ──────────────────────────────────────────────────────────────────────────────
# GitHub
# ──────────────────────────────────────────────────────────────────────────────


def create_http_config(settings: GitHubSettings) -> HttpClientConfig:
    """Configuração HTTP comum ao executor e ao cliente do App."""
    return HttpClientConfig(
        timeout_seconds=settings.request_timeout_seconds,
        default_headers={"User-Agent": settings.user_agent},
    )


def create_github_app_client(
    settings: GitHubSettings,
    http_config: HttpClientConfig | None = None,
) -> GitHubAppClient | None:
    """Cria cliente do GitHub App, ou None se o App não está configurado."""
    if not settings.app_configured:
        logger.info("github_app_disabled", extra={"component": "bootstrap"})
        return None
    client = GitHubAppClient(settings, http_config or create_http_config(settings))
    logger.info("github_app_client_created", extra={"app_id": settings.app_id})
    return client
