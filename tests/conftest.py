"""
Shared fixtures for Synexa client tests.
"""
from __future__ import annotations

from typing import Any, Callable

import pytest

from synexa.infra.settings import clear_settings_cache
from synexa.schemas import Prediction


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep real environment configuration (and any .env file) out of tests."""
    for name in (
        "SYNEXA_API_KEY",
        "SYNEXA_BASE_URL",
        "SYNEXA_REQUEST_TIMEOUT_SECONDS",
        "SYNEXA_WAIT_TIMEOUT_MARGIN_SECONDS",
        "SYNEXA_FILE_FETCH_TIMEOUT_SECONDS",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "USE_STRUCTURED_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def prediction_payload() -> Callable[..., dict[str, Any]]:
    """Factory for server-shaped prediction bodies."""
    def _payload(status: str = "starting", **overrides: Any) -> dict[str, Any]:
        payload = {
            "id": "pred_123",
            "model": "owner/model",
            "version": None,
            "input": {"prompt": "x"},
            "logs": None,
            "output": None,
            "error": None,
            "status": status,
            "created_at": "2026-01-01T00:00:00Z",
            "started_at": None,
            "completed_at": None,
            "metrics": None,
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def make_prediction(prediction_payload) -> Callable[..., Prediction]:
    """Factory for Prediction snapshots."""
    def _make(status: str = "starting", **overrides: Any) -> Prediction:
        return Prediction.model_validate(prediction_payload(status, **overrides))
    return _make
