from __future__ import annotations

import pytest

from common.config import DEFAULT_STATE_KEY, REVALIDATION_WINDOW_MS, Settings


def test_defaults_need_no_environment(monkeypatch):
    for name in (
        "SOLSYNC_API_BASE",
        "SOLSYNC_TIMEOUT",
        "SOLSYNC_REVALIDATION_DAYS",
        "SOLSYNC_STATE_BUCKET",
        "SOLSYNC_STATE_KEY",
        "SOLSYNC_FERNET_KEY",
        "SOLSYNC_STATE_REGION",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.api_base == "https://api.github.com"
    assert s.branch == "main"
    assert s.revalidation_window_ms == REVALIDATION_WINDOW_MS == 604_800_000
    assert s.state_bucket is None
    assert s.fernet_key is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SOLSYNC_API_BASE", "https://ghe.example/api/v3/")
    monkeypatch.setenv("SOLSYNC_TIMEOUT", "3.5")
    monkeypatch.setenv("SOLSYNC_REVALIDATION_DAYS", "1")

    s = Settings.from_env()
    assert s.api_base == "https://ghe.example/api/v3"
    assert s.timeout == 3.5
    assert s.revalidation_window_ms == 86_400_000


def test_invalid_number_raises(monkeypatch):
    monkeypatch.delenv("SOLSYNC_REVALIDATION_DAYS", raising=False)
    monkeypatch.setenv("SOLSYNC_TIMEOUT", "soon")
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_state_bucket_settings(monkeypatch):
    monkeypatch.setenv("SOLSYNC_STATE_BUCKET", "creds")
    monkeypatch.setenv("SOLSYNC_FERNET_KEY", "not-checked-here")
    monkeypatch.setenv("SOLSYNC_STATE_REGION", "eu-west-1")
    monkeypatch.delenv("SOLSYNC_STATE_KEY", raising=False)

    s = Settings.from_env()
    assert s.state_bucket == "creds"
    assert s.state_key == DEFAULT_STATE_KEY
    assert s.state_region == "eu-west-1"
    assert s.fernet_key.get_secret_value() == "not-checked-here"
    assert "not-checked-here" not in repr(s)


def test_state_bucket_without_fernet_key_raises(monkeypatch):
    monkeypatch.setenv("SOLSYNC_STATE_BUCKET", "creds")
    monkeypatch.delenv("SOLSYNC_FERNET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SOLSYNC_FERNET_KEY"):
        Settings.from_env()
