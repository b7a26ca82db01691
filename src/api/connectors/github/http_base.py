"""Transporte HTTP base do conector GitHub."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass
class HttpClientConfig:
    """Configuração do transporte HTTP.

    `transport` permite injetar um httpx.MockTransport em testes.
    """

    timeout_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True
    transport: httpx.AsyncBaseTransport | None = None


async def send_request(
    config: HttpClientConfig,
    method: str,
    url: str,
    *,
    headers: httpx.Headers | dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any = None,
    follow_redirects: bool = True,
) -> httpx.Response:
    """Executa uma única requisição e retorna a resposta já lida."""
    merged = httpx.Headers(config.default_headers)
    merged.update(headers or {})
    async with httpx.AsyncClient(
        verify=config.verify_ssl,
        transport=config.transport,
        timeout=config.timeout_seconds,
        follow_redirects=follow_redirects,
    ) as client:
        response = await client.request(
            method,
            url,
            headers=merged,
            params=params,
            json=json,
        )
    return response
