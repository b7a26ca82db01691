"""Testes da notificação best-effort."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.services.notify import notify_best_effort


def test_invokes_callback_with_args() -> None:
    callback = MagicMock()

    assert notify_best_effort(callback, "a", 1) is True
    callback.assert_called_once_with("a", 1)


def test_none_callback_is_ignored() -> None:
    assert notify_best_effort(None, "a") is False


def test_callback_failure_is_contained(caplog: pytest.LogCaptureFixture) -> None:
    callback = MagicMock(side_effect=RuntimeError("boom"))

    with caplog.at_level("WARNING"):
        assert notify_best_effort(callback, event="transient_error") is False

    record = next(r for r in caplog.records if r.message == "notify_failed")
    assert record.event == "transient_error"
    assert record.error_type == "RuntimeError"
