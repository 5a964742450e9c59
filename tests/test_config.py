from __future__ import annotations

import pytest

from inventrack.config import InventrackConfig
from inventrack.exceptions import InventrackConfigError


def test_base_url_trailing_slash_is_stripped() -> None:
    config = InventrackConfig(base_url="https://api.example.com/")
    assert config.base_url == "https://api.example.com"


def test_empty_base_url_rejected() -> None:
    with pytest.raises(InventrackConfigError):
        InventrackConfig(base_url="  ")


def test_non_positive_timeout_rejected() -> None:
    with pytest.raises(InventrackConfigError):
        InventrackConfig(base_url="https://api.example.com", request_timeout=0)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVENTRACK_BASE_URL", "https://inventory.example.com/api")
    monkeypatch.setenv("INVENTRACK_STORAGE_DIR", "/tmp/inventrack")
    monkeypatch.setenv("INVENTRACK_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("INVENTRACK_PERSIST_VERSION", "3")
    monkeypatch.setenv("INVENTRACK_API_TRACE_ENABLED", "yes")

    config = InventrackConfig.from_env()

    assert config.base_url == "https://inventory.example.com/api"
    assert config.storage_dir == "/tmp/inventrack"
    assert config.request_timeout == 12.5
    assert config.persist_version == 3
    assert config.api_trace_enabled is True


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVENTRACK_BASE_URL", "https://inventory.example.com")
    monkeypatch.setenv("INVENTRACK_PERSIST_VERSION", "not-a-number")

    config = InventrackConfig.from_env(persist_version=7)

    assert config.persist_version == 7


def test_from_env_requires_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INVENTRACK_BASE_URL", raising=False)
    with pytest.raises(InventrackConfigError, match="INVENTRACK_BASE_URL"):
        InventrackConfig.from_env()


def test_from_env_rejects_bad_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVENTRACK_BASE_URL", "https://inventory.example.com")
    monkeypatch.setenv("INVENTRACK_REQUEST_TIMEOUT", "soon")
    with pytest.raises(InventrackConfigError):
        InventrackConfig.from_env()
