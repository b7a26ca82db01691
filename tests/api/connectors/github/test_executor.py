"""Testes do RequestExecutor com httpx.MockTransport."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from api.connectors.github.executor import RequestExecutor, is_failure_status, parse_rate_limit
from api.connectors.github.github_errors import (
    AppAuthError,
    PoolExhaustedError,
    RetriesExhaustedError,
    TransientNetworkError,
    UpstreamApiError,
)
from api.connectors.github.request_builder import (
    ACCEPT_DEFAULT,
    ACCEPT_OCTET_STREAM,
    ACCEPT_PREVIEW,
    RequestOptions,
)
from app.infra.stores.memory_stores import MemoryCredentialStore
from app.services.token_pool import TokenPool
from tests.fakes.fake_github import (
    T0,
    FakeClock,
    RecordingListener,
    RecordingSleep,
    github_settings,
    mock_http,
    rate_limit_headers,
)
from utils.errors import RedisConnectionError

COMMENTS = "/repos/octo/relay/comments"
RESET_EPOCH = int((T0 + timedelta(hours=1)).timestamp())


@dataclass
class Harness:
    executor: RequestExecutor
    store: MemoryCredentialStore
    listener: RecordingListener
    sleep: RecordingSleep
    requests: list[httpx.Request]


async def _harness(
    responder: Any,
    secrets: tuple[str, ...] = ("tok-1", "tok-2"),
    app_client: Any = None,
    **settings: Any,
) -> Harness:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responder(request)

    store = MemoryCredentialStore()
    pool = TokenPool(store, clock=FakeClock())
    await pool.initialize(secrets)
    listener = RecordingListener()
    sleep = RecordingSleep()
    executor = RequestExecutor(
        pool,
        github_settings(**settings),
        app_client=app_client,
        failure_listener=listener,
        http_config=mock_http(handler),
        sleep=sleep,
    )
    return Harness(executor, store, listener, sleep, requests)


def _token(request: httpx.Request) -> str | None:
    return request.headers.get("authorization")


class TestRateLimitParsing:
    def test_reads_headers(self) -> None:
        response = httpx.Response(200, headers=rate_limit_headers(17, RESET_EPOCH))

        remaining, reset_at = parse_rate_limit(response)

        assert remaining == 17
        assert reset_at == T0 + timedelta(hours=1)

    def test_missing_headers_default_to_zero_and_epoch(self) -> None:
        remaining, reset_at = parse_rate_limit(httpx.Response(200))

        assert remaining == 0
        assert reset_at.timestamp() == 0

    @pytest.mark.parametrize(
        ("status", "failure"),
        [(200, False), (204, False), (302, False), (304, False), (401, True), (404, True), (500, True)],
    )
    def test_failure_status(self, status: int, failure: bool) -> None:
        assert is_failure_status(status) is failure


class TestExecuteWithTokens:
    @pytest.mark.asyncio
    async def test_success_records_rate_limit(self) -> None:
        h = await _harness(
            lambda request: httpx.Response(
                200, json=[], headers=rate_limit_headers(4321, RESET_EPOCH)
            )
        )

        response = await h.executor.execute(COMMENTS)

        assert response.status_code == 200
        assert str(h.requests[0].url) == "https://api.github.com/repos/octo/relay/comments"
        assert _token(h.requests[0]) == "token tok-1"
        stored = await h.store.get("tok-1")
        assert stored is not None
        assert stored.rate_limit_remaining == 4321
        assert stored.usage_count == 1

    @pytest.mark.asyncio
    async def test_invalid_credential_is_deactivated_and_rotated(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if _token(request) == "token tok-1":
                return httpx.Response(401, text="Bad credentials")
            return httpx.Response(200, json={"ok": True})

        h = await _harness(responder)

        response = await h.executor.execute(COMMENTS)

        assert response.json() == {"ok": True}
        assert [_token(r) for r in h.requests] == ["token tok-1", "token tok-2"]
        deactivated = await h.store.get("tok-1")
        assert deactivated is not None
        assert deactivated.is_active is False
        assert h.sleep.delays == []
        assert h.listener.transient == []
        assert h.listener.processing == []

    @pytest.mark.asyncio
    async def test_deactivated_credential_never_used_again(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if _token(request) == "token tok-1":
                return httpx.Response(401)
            return httpx.Response(200, json=[])

        h = await _harness(responder)

        for _ in range(3):
            await h.executor.execute(COMMENTS)

        assert [_token(r) for r in h.requests].count("token tok-1") == 1

    @pytest.mark.asyncio
    async def test_quota_exceeded_rotates_without_sleep(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if _token(request) == "token tok-1":
                return httpx.Response(403, headers=rate_limit_headers(0, RESET_EPOCH))
            return httpx.Response(200, json=[], headers=rate_limit_headers(4999, RESET_EPOCH))

        h = await _harness(responder)

        await h.executor.execute(COMMENTS)

        assert [_token(r) for r in h.requests] == ["token tok-1", "token tok-2"]
        assert h.sleep.delays == []
        exhausted = await h.store.get("tok-1")
        assert exhausted is not None
        assert exhausted.is_active is True
        assert exhausted.rate_limit_remaining == 0

    @pytest.mark.asyncio
    async def test_network_errors_retry_with_linear_backoff(self) -> None:
        calls = {"count": 0}

        def responder(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json=[])

        h = await _harness(responder)

        response = await h.executor.execute(COMMENTS)

        assert response.status_code == 200
        assert h.sleep.delays == [1.5, 3.0]
        assert h.listener.transient == []

    @pytest.mark.asyncio
    async def test_retries_exhausted_notifies_transient(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        h = await _harness(responder)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await h.executor.execute(COMMENTS)

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, TransientNetworkError)
        assert len(h.requests) == 3
        assert h.sleep.delays == [1.5, 3.0]
        assert h.listener.transient == [exc_info.value]

    @pytest.mark.asyncio
    async def test_quota_exceeded_on_every_credential_exhausts_retries(self) -> None:
        h = await _harness(
            lambda request: httpx.Response(403, headers=rate_limit_headers(1, RESET_EPOCH)),
            secrets=("tok-1", "tok-2", "tok-3"),
        )

        with pytest.raises(RetriesExhaustedError):
            await h.executor.execute(COMMENTS)

        assert len(h.requests) == 3
        assert len(h.listener.transient) == 1

    @pytest.mark.asyncio
    async def test_non_recoverable_status_fails_immediately(self) -> None:
        h = await _harness(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(UpstreamApiError) as exc_info:
            await h.executor.execute(COMMENTS)

        assert exc_info.value.status == 500
        assert len(h.requests) == 1
        assert h.listener.processing == [exc_info.value]
        assert h.listener.transient == []

    @pytest.mark.asyncio
    async def test_not_modified_is_not_a_failure(self) -> None:
        h = await _harness(lambda request: httpx.Response(304))

        response = await h.executor.execute(COMMENTS)

        assert response.status_code == 304


class TestHeaders:
    @pytest.mark.asyncio
    async def test_default_and_preview_accept(self) -> None:
        h = await _harness(lambda request: httpx.Response(200, json=[]))

        await h.executor.execute(COMMENTS)
        await h.executor.execute(COMMENTS, preview=True)

        assert h.requests[0].headers["accept"] == ACCEPT_DEFAULT
        assert h.requests[1].headers["accept"] == ACCEPT_PREVIEW
        assert h.requests[0].headers["user-agent"] == "github-relay"

    @pytest.mark.asyncio
    async def test_caller_accept_is_preserved(self) -> None:
        h = await _harness(lambda request: httpx.Response(200, json=[]))
        options = RequestOptions(headers={"Accept": "application/vnd.github.raw"})

        await h.executor.execute(COMMENTS, options, preview=True)

        assert h.requests[0].headers["accept"] == "application/vnd.github.raw"

    @pytest.mark.asyncio
    async def test_asset_host_never_receives_token(self) -> None:
        h = await _harness(lambda request: httpx.Response(200, content=b"png"))

        await h.executor.execute("https://user-images.githubusercontent.com/1/image.png")

        assert "authorization" not in h.requests[0].headers

    @pytest.mark.asyncio
    async def test_method_params_and_body_are_forwarded(self) -> None:
        h = await _harness(lambda request: httpx.Response(201, json={"id": 1}))
        options = RequestOptions(method="POST", params={"page": 2}, json={"body": "hi"})

        await h.executor.execute(COMMENTS, options)

        request = h.requests[0]
        assert request.method == "POST"
        assert request.url.params["page"] == "2"
        assert json.loads(request.content) == {"body": "hi"}


class TestAttachmentDownload:
    DOWNLOAD = "https://github.com/octo/relay/releases/download/v1/build.zip"

    @pytest.mark.asyncio
    async def test_redirect_is_followed_without_authorization(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if request.url.host == "github.com":
                return httpx.Response(
                    302, headers={"location": "https://objects.example.com/build.zip"}
                )
            return httpx.Response(200, content=b"zip-bytes")

        h = await _harness(responder)

        response = await h.executor.execute(self.DOWNLOAD)

        assert response.content == b"zip-bytes"
        assert len(h.requests) == 2
        assert h.requests[0].headers["accept"] == ACCEPT_OCTET_STREAM
        assert _token(h.requests[0]) == "token tok-1"
        assert "authorization" not in h.requests[1].headers

    @pytest.mark.asyncio
    async def test_redirect_without_location_fails(self) -> None:
        h = await _harness(lambda request: httpx.Response(302))

        with pytest.raises(UpstreamApiError, match="No redirect URL"):
            await h.executor.execute(self.DOWNLOAD)

        assert len(h.listener.processing) == 1


    @pytest.mark.asyncio
    async def test_follow_up_network_error_is_not_retried(self) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if request.url.host == "github.com":
                return httpx.Response(
                    302, headers={"location": "https://objects.example.com/build.zip"}
                )
            raise httpx.ConnectError("connection reset", request=request)

        h = await _harness(responder)

        with pytest.raises(httpx.ConnectError):
            await h.executor.execute(self.DOWNLOAD)

        assert [request.url.host for request in h.requests] == ["github.com", "objects.example.com"]
        assert h.sleep.delays == []
        assert len(h.listener.transient) == 1
        stored = await h.store.get("tok-1")
        assert stored is not None
        assert stored.usage_count == 1


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_record_usage_failure_notifies_gate(self) -> None:
        h = await _harness(lambda request: httpx.Response(200, json=[]))
        h.store.record_usage = AsyncMock(side_effect=RedisConnectionError("redis down"))

        with pytest.raises(RedisConnectionError):
            await h.executor.execute(COMMENTS)

        assert len(h.requests) == 1
        assert [type(e) for e in h.listener.transient] == [RedisConnectionError]
        assert h.listener.processing == []

    @pytest.mark.asyncio
    async def test_acquire_failure_notifies_gate(self) -> None:
        h = await _harness(lambda request: httpx.Response(200, json=[]))
        h.store.select_available = AsyncMock(side_effect=RedisConnectionError("redis down"))

        with pytest.raises(RedisConnectionError):
            await h.executor.execute(COMMENTS)

        assert h.requests == []
        assert len(h.listener.transient) == 1

    @pytest.mark.asyncio
    async def test_deactivate_failure_notifies_gate(self) -> None:
        h = await _harness(lambda request: httpx.Response(401))
        h.store.deactivate = AsyncMock(side_effect=RedisConnectionError("redis down"))

        with pytest.raises(RedisConnectionError):
            await h.executor.execute(COMMENTS)

        assert len(h.requests) == 1
        assert [type(e) for e in h.listener.transient] == [RedisConnectionError]


class TestAppFallback:
    @pytest.mark.asyncio
    async def test_pool_empty_without_app_raises(self) -> None:
        h = await _harness(lambda request: httpx.Response(200), secrets=())

        with pytest.raises(PoolExhaustedError):
            await h.executor.execute(COMMENTS)

        assert h.requests == []
        assert len(h.listener.transient) == 1

    @pytest.mark.asyncio
    async def test_pool_empty_uses_app_credentials(self, caplog: pytest.LogCaptureFixture) -> None:
        app_client = MagicMock()
        app_client.fetch_as_app = AsyncMock(return_value=httpx.Response(200, json=[]))
        h = await _harness(lambda request: httpx.Response(200), secrets=(), app_client=app_client)

        with caplog.at_level("WARNING"):
            response = await h.executor.execute(COMMENTS, preview=True)

        assert response.status_code == 200
        call = app_client.fetch_as_app.await_args
        assert call.args == ("https://api.github.com/repos/octo/relay/comments", "octo", "relay")
        assert call.kwargs["preview"] is True
        assert any(getattr(r, "fallback_used", False) for r in caplog.records)

    @pytest.mark.asyncio
    async def test_fallback_requires_repository_url(self) -> None:
        app_client = MagicMock()
        app_client.fetch_as_app = AsyncMock()
        h = await _harness(lambda request: httpx.Response(200), secrets=(), app_client=app_client)

        with pytest.raises(PoolExhaustedError):
            await h.executor.execute("/user")

        app_client.fetch_as_app.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fallback_auth_failure_becomes_pool_exhausted(self) -> None:
        app_client = MagicMock()
        app_client.fetch_as_app = AsyncMock(side_effect=AppAuthError("no installation"))
        h = await _harness(lambda request: httpx.Response(200), secrets=(), app_client=app_client)

        with pytest.raises(PoolExhaustedError) as exc_info:
            await h.executor.execute(COMMENTS)

        assert isinstance(exc_info.value.__cause__, AppAuthError)
        assert len(h.listener.transient) == 1

    @pytest.mark.asyncio
    async def test_fallback_response_status_is_checked(self) -> None:
        app_client = MagicMock()
        app_client.fetch_as_app = AsyncMock(
            return_value=httpx.Response(404, text="Not Found")
        )
        h = await _harness(lambda request: httpx.Response(200), secrets=(), app_client=app_client)

        with pytest.raises(UpstreamApiError) as exc_info:
            await h.executor.execute(COMMENTS)

        assert exc_info.value.status == 404
        assert h.listener.processing == [exc_info.value]

    @pytest.mark.asyncio
    async def test_all_credentials_deactivated_falls_back_mid_call(self) -> None:
        app_client = MagicMock()
        app_client.fetch_as_app = AsyncMock(return_value=httpx.Response(200, json=[]))
        h = await _harness(
            lambda request: httpx.Response(401),
            secrets=("tok-1",),
            app_client=app_client,
        )

        response = await h.executor.execute(COMMENTS)

        assert response.status_code == 200
        assert len(h.requests) == 1
        app_client.fetch_as_app.assert_awaited_once()
