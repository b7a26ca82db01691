"""Testes dos stores em memória (credenciais e checkpoint)."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.credential import Credential
from app.infra.stores.memory_stores import MemoryCheckpointStore, MemoryCredentialStore
from tests.fakes.fake_github import T0
from utils.errors import DuplicateCredentialError


def _credential(secret: str, remaining: int = 5000, reset_in: float = 0, **extra: object) -> Credential:
    return Credential(
        secret=secret,
        rate_limit_remaining=remaining,
        rate_limit_reset_at=T0 + timedelta(seconds=reset_in),
        last_used_at=T0,
        created_at=T0,
        **extra,
    )


class TestMemoryCredentialStore:
    @pytest.mark.asyncio
    async def test_add_rejects_duplicate_secret(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a"))

        with pytest.raises(DuplicateCredentialError):
            await store.add(_credential("tok-a"))
        assert await store.count_active() == 1

    @pytest.mark.asyncio
    async def test_select_prefers_highest_remaining(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a", remaining=0, reset_in=-60))
        await store.add(_credential("tok-b", remaining=5))

        selected = await store.select_available(T0)

        assert selected is not None
        assert selected.secret == "tok-b"

    @pytest.mark.asyncio
    async def test_select_accepts_exhausted_credential_after_reset(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a", remaining=0, reset_in=600))
        await store.add(_credential("tok-b", remaining=0, reset_in=-600))

        selected = await store.select_available(T0)

        assert selected is not None
        assert selected.secret == "tok-b"

    @pytest.mark.asyncio
    async def test_select_returns_none_when_all_unusable(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a", remaining=0, reset_in=600))
        await store.add(_credential("tok-b", is_active=False))

        assert await store.select_available(T0) is None

    @pytest.mark.asyncio
    async def test_ties_keep_registration_order(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-first", remaining=10))
        await store.add(_credential("tok-second", remaining=10))

        selected = await store.select_available(T0)

        assert selected is not None
        assert selected.secret == "tok-first"

    @pytest.mark.asyncio
    async def test_record_usage_updates_window_and_counter(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a"))
        reset_at = T0 + timedelta(hours=1)
        used_at = T0 + timedelta(seconds=5)

        await store.record_usage("tok-a", 4321, reset_at, used_at)
        await store.record_usage("tok-a", 4320, reset_at, used_at)

        stored = await store.get("tok-a")
        assert stored is not None
        assert stored.usage_count == 2
        assert stored.rate_limit_remaining == 4320
        assert stored.rate_limit_reset_at == reset_at
        assert stored.last_used_at == used_at

    @pytest.mark.asyncio
    async def test_record_usage_ignores_unknown_secret(self) -> None:
        store = MemoryCredentialStore()
        await store.record_usage("missing", 1, T0, T0)
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_returned_credentials_are_copies(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a"))

        copy = await store.get("tok-a")
        assert copy is not None
        copy.is_active = False

        stored = await store.get("tok-a")
        assert stored is not None
        assert stored.is_active is True

    @pytest.mark.asyncio
    async def test_deactivate_twice_is_noop(self) -> None:
        store = MemoryCredentialStore()
        await store.add(_credential("tok-a"))

        await store.deactivate("tok-a")
        await store.deactivate("tok-a")

        stored = await store.get("tok-a")
        assert stored is not None
        assert stored.is_active is False
        assert await store.count_active() == 0


class TestMemoryCheckpointStore:
    @pytest.mark.asyncio
    async def test_get_returns_default_when_empty(self) -> None:
        store = MemoryCheckpointStore()
        assert await store.get() == 0
        assert await store.get(default=-1) == -1

    @pytest.mark.asyncio
    async def test_checkpoint_never_moves_backwards(self) -> None:
        store = MemoryCheckpointStore()
        observed: list[int] = []

        for item_id in [5, 3, 9, 9, 1, 12, 11]:
            await store.set(item_id)
            observed.append(await store.get())

        assert observed == [5, 5, 9, 9, 9, 12, 12]
        assert observed == sorted(observed)

    @pytest.mark.asyncio
    async def test_set_reports_whether_it_advanced(self) -> None:
        store = MemoryCheckpointStore(initial=10)

        assert await store.set(10) is False
        assert await store.set(4) is False
        assert await store.set(11) is True
