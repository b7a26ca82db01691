"""Composition root do relay — constrói e conecta os serviços.

O pool e o gate são objetos de serviço explícitos, construídos uma vez
e passados por referência a quem precisa deles. Não há estado global
criado em import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from api.connectors.github.executor import RequestExecutor
from api.connectors.github.installation_probe import GitHubAppInstallationProbe
from app.bootstrap.clients import create_github_app_client, create_http_config
from app.bootstrap.dependencies_stores import (
    create_checkpoint_store,
    create_credential_store,
)
from app.infra.sinks import LoggingCommentSink
from app.services.delivery_gate import DeliveryGate
from app.services.token_pool import TokenPool
from app.use_cases.github import (
    CommitCommentPoller,
    WebhookEventResult,
    handle_verified_webhook_event,
)
from config.settings import (
    get_base_settings,
    get_delivery_settings,
    get_github_settings,
    get_store_settings,
)

if TYPE_CHECKING:
    from api.connectors.github.app_auth import GitHubAppClient
    from app.protocols.checkpoint_store import CheckpointStoreProtocol
    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.item_sink import CommentSinkProtocol
    from config.settings import (
        BaseSettings,
        DeliverySettings,
        GitHubSettings,
        StoreSettings,
    )

logger = logging.getLogger(__name__)


@dataclass
class RelayServices:
    """Serviços do relay, construídos uma vez por processo."""

    github: GitHubSettings
    credential_store: CredentialStoreProtocol
    checkpoint_store: CheckpointStoreProtocol
    token_pool: TokenPool
    app_client: GitHubAppClient | None
    executor: RequestExecutor
    gate: DeliveryGate
    poller: CommitCommentPoller

    async def handle_webhook(self, event: str, payload: dict[str, Any]) -> WebhookEventResult:
        """Entrada para o receptor de webhooks (após verificar assinatura)."""
        return await handle_verified_webhook_event(self.gate, self.poller, event, payload)


def build_relay_services(
    base: BaseSettings | None = None,
    stores: StoreSettings | None = None,
    github: GitHubSettings | None = None,
    delivery: DeliverySettings | None = None,
    sink: CommentSinkProtocol | None = None,
    credential_store: CredentialStoreProtocol | None = None,
    checkpoint_store: CheckpointStoreProtocol | None = None,
) -> RelayServices:
    """Constrói o grafo de serviços a partir das settings.

    Stores e sink podem ser injetados (testes, outros destinos).
    """
    base = base or get_base_settings()
    stores = stores or get_store_settings()
    github = github or get_github_settings()
    delivery = delivery or get_delivery_settings()

    credential_store = credential_store or create_credential_store(base, stores)
    checkpoint_store = checkpoint_store or create_checkpoint_store(base, stores)

    http_config = create_http_config(github)
    app_client = create_github_app_client(github, http_config)
    probe = GitHubAppInstallationProbe(app_client, github.repo_owner, github.repo_name)
    gate = DeliveryGate(probe, delivery)

    token_pool = TokenPool(credential_store)
    executor = RequestExecutor(
        token_pool,
        github,
        app_client=app_client,
        failure_listener=gate,
        http_config=http_config,
    )
    poller = CommitCommentPoller(
        executor,
        checkpoint_store,
        sink or LoggingCommentSink(),
        owner=github.repo_owner,
        repo=github.repo_name,
        per_page=github.comments_per_page,
    )
    logger.info(
        "relay_services_built",
        extra={"repository": github.watched_repository, "store_backend": stores.backend},
    )
    return RelayServices(
        github=github,
        credential_store=credential_store,
        checkpoint_store=checkpoint_store,
        token_pool=token_pool,
        app_client=app_client,
        executor=executor,
        gate=gate,
        poller=poller,
    )


async def start_relay(services: RelayServices, start_timer: bool = True) -> None:
    """Provisiona credenciais e inicializa o gate (uma vez por processo)."""
    await services.token_pool.initialize(services.github.token_secrets)
    await services.gate.init(services, services.poller.poll, start_timer=start_timer)


async def stop_relay(services: RelayServices) -> None:
    await services.gate.shutdown()
