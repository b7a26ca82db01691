"""Construção de requisições para a API GitHub.

Concentra as particularidades do upstream: media types de preview,
anexos que não podem seguir redirect automaticamente e hosts de assets
que nunca recebem o token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import httpx

ACCEPT_OCTET_STREAM = "application/octet-stream"
ACCEPT_PREVIEW = "application/vnd.github.full+json"
ACCEPT_DEFAULT = "application/vnd.github.v3+json"
ACCEPT_APP = "application/vnd.github+json"

ATTACHMENT_PATH_MARKERS: tuple[str, ...] = ("/download/", "/raw/")

_REPO_PATH_RE = re.compile(r"/repos/([^/?#]+)/([^/?#]+)")


@dataclass
class RequestOptions:
    """Opções da chamada lógica (método, headers, query e corpo)."""

    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json: Any = None


def resolve_url(base_url: str, target: str) -> str:
    """Aceita URL absoluta ou caminho relativo à API base."""
    if target.startswith(("http://", "https://")):
        return target
    return f"{base_url.rstrip('/')}/{target.lstrip('/')}"


def is_attachment_url(url: str) -> bool:
    return any(marker in url for marker in ATTACHMENT_PATH_MARKERS)


def choose_accept(url: str, preview: bool) -> str:
    """Accept por classe de conteúdo: anexo, preview ou padrão."""
    if is_attachment_url(url):
        return ACCEPT_OCTET_STREAM
    if preview:
        return ACCEPT_PREVIEW
    return ACCEPT_DEFAULT


def is_unauthenticated_host(url: str, hosts: tuple[str, ...]) -> bool:
    return (urlsplit(url).hostname or "").lower() in hosts


def build_headers(
    url: str,
    caller_headers: dict[str, str] | None,
    *,
    preview: bool = False,
    authorization: str | None = None,
    unauthenticated_hosts: tuple[str, ...] = (),
    user_agent: str | None = None,
) -> httpx.Headers:
    """Mescla headers do chamador com Accept e Authorization.

    Nunca sobrescreve um Accept informado pelo chamador. Hosts de assets
    não recebem Authorization.
    """
    headers = httpx.Headers(caller_headers or {})
    if "accept" not in headers:
        headers["Accept"] = choose_accept(url, preview)
    if user_agent and "user-agent" not in headers:
        headers["User-Agent"] = user_agent
    if authorization and not is_unauthenticated_host(url, unauthenticated_hosts):
        headers["Authorization"] = authorization
    return headers


def is_attachment_download(url: str, headers: httpx.Headers) -> bool:
    """Anexo binário: URL de download ou Accept octet-stream."""
    return is_attachment_url(url) or ACCEPT_OCTET_STREAM in headers.get("accept", "")


def extract_repository(url: str) -> tuple[str, str] | None:
    """Extrai (owner, repo) de URLs /repos/{owner}/{repo}/..."""
    match = _REPO_PATH_RE.search(urlsplit(url).path)
    if match is None:
        return None
    return match.group(1), match.group(2)
