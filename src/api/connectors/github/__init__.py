"""Conector GitHub — acesso resiliente à API REST.

Uso:
    from api.connectors.github import RequestExecutor, RequestOptions

    response = await executor.execute("/repos/owner/repo/comments", preview=True)
"""

from api.connectors.github.app_auth import GitHubAppClient
from api.connectors.github.executor import RequestExecutor, parse_rate_limit
from api.connectors.github.github_errors import (
    AppAuthError,
    InvalidCredentialError,
    PoolExhaustedError,
    QuotaExceededError,
    RetriesExhaustedError,
    TransientNetworkError,
    UpstreamApiError,
    UpstreamError,
    classify_transport_error,
)
from api.connectors.github.http_base import HttpClientConfig
from api.connectors.github.installation_probe import GitHubAppInstallationProbe
from api.connectors.github.models import CommitComment
from api.connectors.github.request_builder import RequestOptions
from api.connectors.github.retry_policy import RetryDecision, decide_retry, linear_backoff

__all__ = [
    "AppAuthError",
    "CommitComment",
    "GitHubAppClient",
    "GitHubAppInstallationProbe",
    "HttpClientConfig",
    "InvalidCredentialError",
    "PoolExhaustedError",
    "QuotaExceededError",
    "RequestExecutor",
    "RequestOptions",
    "RetriesExhaustedError",
    "RetryDecision",
    "TransientNetworkError",
    "UpstreamApiError",
    "UpstreamError",
    "classify_transport_error",
    "decide_retry",
    "linear_backoff",
    "parse_rate_limit",
]
