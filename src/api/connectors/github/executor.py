"""Request Executor — chamada autenticada à API GitHub com retry e rotação.

Responsabilidades:
- Obter credencial do TokenPool a cada tentativa
- Fallback para autenticação como GitHub App quando o pool está vazio
- Registrar rate limit após toda resposta (sucesso ou falha)
- Redirect manual para downloads de anexos (follow-up fora do retry)
- Retry por tipo de erro (401 desativa, 403 rotaciona, rede aplica backoff)
- Notificar o DeliveryGate das falhas que escapam do executor (inclusive do store)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

import httpx

from api.connectors.github.github_errors import (
    AppAuthError,
    PoolExhaustedError,
    RetriesExhaustedError,
    UpstreamApiError,
    api_error_from_status,
    classify_transport_error,
)
from api.connectors.github.github_logging import (
    log_retry,
    log_success,
    log_upstream_failure,
)
from api.connectors.github.http_base import HttpClientConfig, send_request
from api.connectors.github.request_builder import (
    RequestOptions,
    build_headers,
    extract_repository,
    is_attachment_download,
    resolve_url,
)
from api.connectors.github.retry_policy import (
    Backoff,
    decide_retry,
    is_recoverable,
    linear_backoff,
)
from app.domain.credential import mask_secret
from app.services.clock import Sleep
from app.services.notify import notify_best_effort
from config.logging import log_fallback

if TYPE_CHECKING:
    from api.connectors.github.app_auth import GitHubAppClient
    from app.domain.credential import Credential
    from app.protocols.failure_listener import FailureListenerProtocol
    from app.services.token_pool import TokenPool
    from config.settings import GitHubSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-remaining"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"

# Status que não são falha mesmo fora da faixa 2xx
_NON_FAILURE_STATUSES = frozenset({302, 304})


def parse_rate_limit(response: httpx.Response) -> tuple[int, datetime]:
    """Extrai (remaining, reset_at) dos headers; ausentes viram 0 / epoch."""
    try:
        remaining = int(response.headers.get(RATE_LIMIT_REMAINING_HEADER, "0"))
    except ValueError:
        remaining = 0
    try:
        reset_epoch = int(response.headers.get(RATE_LIMIT_RESET_HEADER, "0"))
    except ValueError:
        reset_epoch = 0
    return remaining, datetime.fromtimestamp(reset_epoch, tz=UTC)


def is_failure_status(status_code: int) -> bool:
    return not (200 <= status_code < 300) and status_code not in _NON_FAILURE_STATUSES


class RequestExecutor:
    """Executa chamadas lógicas autenticadas contra a API GitHub.

    Args:
        token_pool: Pool de credenciais
        settings: GitHubSettings (base URL, retries, hosts sem auth)
        app_client: Cliente GitHub App para fallback (opcional)
        failure_listener: Receptor de falhas (DeliveryGate), opcional
        http_config: Configuração do transporte HTTP
        sleep: Função de espera entre tentativas (injetável em testes)
        backoff: Política de atraso para erros de rede
    """

    def __init__(
        self,
        token_pool: TokenPool,
        settings: GitHubSettings,
        app_client: GitHubAppClient | None = None,
        failure_listener: FailureListenerProtocol | None = None,
        http_config: HttpClientConfig | None = None,
        sleep: Sleep = asyncio.sleep,
        backoff: Backoff | None = None,
    ) -> None:
        self._pool = token_pool
        self._settings = settings
        self._app_client = app_client
        self._listener = failure_listener
        self._http = http_config or HttpClientConfig(
            timeout_seconds=settings.request_timeout_seconds
        )
        self._sleep = sleep
        self._backoff = backoff or linear_backoff(settings.retry_base_delay_seconds)
        self._max_attempts = settings.max_retries

    def bind_failure_listener(self, listener: FailureListenerProtocol) -> None:
        """Liga o receptor de falhas após a construção (composição circular)."""
        self._listener = listener

    async def execute(
        self,
        target: str,
        options: RequestOptions | None = None,
        preview: bool = False,
    ) -> httpx.Response:
        """Executa a chamada com até `max_retries` tentativas.

        Raises:
            PoolExhaustedError: Sem credencial e sem fallback viável.
            UpstreamApiError: Status de falha não recuperável.
            RetriesExhaustedError: Tentativas esgotadas em erros recuperáveis.
        """
        options = options or RequestOptions()
        url = resolve_url(self._settings.api_base_url, target)
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            credential = await self._guarded(self._pool.acquire())
            if credential is None:
                return await self._execute_as_app(url, options, preview)

            try:
                response, redirect_pending = await self._attempt(url, options, preview, credential)
            except UpstreamApiError as exc:
                error: Exception = exc
            except httpx.HTTPError as exc:
                transient = classify_transport_error(exc)
                if transient is None:
                    self._notify(exc)
                    raise
                transient.__cause__ = exc
                error = transient
            except Exception as exc:
                self._notify(exc)
                raise
            else:
                if redirect_pending:
                    return await self._follow_attachment_redirect(url, response)
                return response

            decision = decide_retry(attempt, self._max_attempts, error, self._backoff)
            if decision.deactivate:
                await self._guarded(self._pool.deactivate(credential.secret))
            if not decision.retry:
                if is_recoverable(error):
                    last_error = error
                    break
                self._notify(error)
                raise error

            last_error = error
            log_retry(url, attempt, error, decision.delay_seconds)
            if decision.delay_seconds > 0:
                await self._sleep(decision.delay_seconds)

        exhausted = RetriesExhaustedError(url, self._max_attempts)
        logger.error(
            "github_request_failed",
            extra={
                "target": url,
                "attempts": self._max_attempts,
                "error_type": type(last_error).__name__,
            },
        )
        self._notify(exhausted)
        raise exhausted from last_error

    async def _attempt(
        self,
        url: str,
        options: RequestOptions,
        preview: bool,
        credential: Credential,
    ) -> tuple[httpx.Response, bool]:
        """Uma tentativa autenticada.

        Returns:
            (resposta, True se um 302 de anexo aguarda o follow-up manual)
        """
        headers = build_headers(
            url,
            options.headers,
            preview=preview,
            authorization=f"token {credential.secret}",
            unauthenticated_hosts=self._settings.unauthenticated_hosts,
            user_agent=self._settings.user_agent,
        )
        attachment = is_attachment_download(url, headers)
        response = await send_request(
            self._http,
            options.method,
            url,
            headers=headers,
            params=options.params,
            json=options.json,
            follow_redirects=not attachment,
        )

        remaining, reset_at = parse_rate_limit(response)
        await self._pool.record_usage(credential.secret, remaining, reset_at)

        if attachment and response.status_code == 302:
            return response, True

        self._raise_for_status(url, response, token=mask_secret(credential.secret))
        log_success(options.method, url, response.status_code)
        return response, False

    async def _follow_attachment_redirect(
        self,
        url: str,
        response: httpx.Response,
    ) -> httpx.Response:
        """Uma única requisição ao Location, sem Authorization e sem retry."""
        location = response.headers.get("location")
        if not location:
            error = UpstreamApiError(
                response.status_code,
                response.reason_phrase,
                "No redirect URL provided for attachment",
            )
            self._notify(error)
            raise error
        logger.debug("github_attachment_redirect", extra={"target": url})
        try:
            return await send_request(self._http, "GET", location)
        except httpx.HTTPError as exc:
            self._notify(exc)
            raise

    async def _guarded(self, operation: Awaitable[T]) -> T:
        """Aguarda uma operação do pool; falha do store notifica o gate."""
        try:
            return await operation
        except Exception as exc:
            self._notify(exc)
            raise

    async def _execute_as_app(
        self,
        url: str,
        options: RequestOptions,
        preview: bool,
    ) -> httpx.Response:
        log_fallback(logger, "github_app_auth", reason="token_pool_exhausted", target=url)
        repository = extract_repository(url)
        if self._app_client is None or repository is None:
            error = PoolExhaustedError(
                "No GitHub tokens available and GitHub App fallback was not applicable"
            )
            self._notify(error)
            raise error

        owner, repo = repository
        try:
            response = await self._app_client.fetch_as_app(
                url,
                owner,
                repo,
                method=options.method,
                headers=options.headers,
                params=options.params,
                json_body=options.json,
                preview=preview,
            )
        except (AppAuthError, httpx.HTTPError) as exc:
            logger.error(
                "github_app_fallback_failed",
                extra={"target": url, "error_type": type(exc).__name__, "error": str(exc)},
            )
            error = PoolExhaustedError(
                "No GitHub tokens available and GitHub App fallback failed"
            )
            self._notify(error)
            raise error from exc

        try:
            self._raise_for_status(url, response)
        except UpstreamApiError as exc:
            self._notify(exc)
            raise
        log_success(options.method, url, response.status_code, via="app")
        return response

    def _raise_for_status(
        self,
        url: str,
        response: httpx.Response,
        token: str | None = None,
    ) -> None:
        if not is_failure_status(response.status_code):
            return
        log_upstream_failure(
            url,
            response.status_code,
            response.reason_phrase,
            response.text,
            token=token,
        )
        raise api_error_from_status(response.status_code, response.reason_phrase)

    def _notify(self, error: BaseException) -> None:
        if self._listener is None:
            return
        # Erro de API é falha de processamento; o restante é transitório
        if isinstance(error, UpstreamApiError):
            notify_best_effort(
                self._listener.handle_processing_error,
                error,
                event="processing_error",
            )
        else:
            notify_best_effort(
                self._listener.handle_transient_error,
                error,
                event="transient_error",
            )
