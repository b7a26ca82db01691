"""Sonda de capacidade: o GitHub App está instalado no repositório observado?"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.capability_probe import DeliveryCapabilityProbeProtocol

if TYPE_CHECKING:
    from api.connectors.github.app_auth import GitHubAppClient

logger = logging.getLogger(__name__)


class GitHubAppInstallationProbe(DeliveryCapabilityProbeProtocol):
    """Integração push instalada = App instalado no owner/repo observado."""

    def __init__(self, app_client: GitHubAppClient | None, owner: str, repo: str) -> None:
        self._app_client = app_client
        self._owner = owner
        self._repo = repo

    async def is_push_delivery_installed(self) -> bool:
        if self._app_client is None or not self._app_client.configured:
            return False
        if not self._owner or not self._repo:
            return False
        installation_id = await self._app_client.get_installation_id(self._owner, self._repo)
        logger.info(
            "capability_probe_result",
            extra={
                "repository": f"{self._owner}/{self._repo}",
                "installed": installation_id is not None,
            },
        )
        return installation_id is not None
