"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import ObserverConfig, load_config
from core.constants import DEFAULT_BATCH_SIZE
from core.errors import ObserverConfigError


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to defaults without environment overrides."""
    monkeypatch.delenv("OBSERVER_BATCH_SIZE", raising=False)

    config = ObserverConfig.from_env()

    assert config.batch_size == DEFAULT_BATCH_SIZE and config.cache_pulse_horizon == 0


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read numeric values from the environment."""
    monkeypatch.setenv("OBSERVER_BATCH_SIZE", "250")
    monkeypatch.setenv("OBSERVER_REQUEST_DELAY", "0.5")

    config = ObserverConfig.from_env()

    assert config.batch_size == 250 and config.request_delay == 0.5


def test_from_env_raises_for_invalid_batch_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric batch size."""
    monkeypatch.setenv("OBSERVER_BATCH_SIZE", "not-a-number")

    with pytest.raises(ObserverConfigError):
        ObserverConfig.from_env()

    assert os.getenv("OBSERVER_BATCH_SIZE") == "not-a-number"


def test_from_env_rejects_zero_attempts(monkeypatch: pytest.MonkeyPatch) -> None:
    """Startup reads need at least one attempt."""
    monkeypatch.setenv("OBSERVER_ATTEMPTS", "0")

    with pytest.raises(ObserverConfigError):
        ObserverConfig.from_env()


def test_load_config_overlays_yaml(tmp_path) -> None:
    """YAML values should override environment defaults."""
    config_file = tmp_path / "observer.yaml"
    config_file.write_text(
        "database_url: sqlite:///custom.db\n"
        "batch_size: 50\n"
        "cache_pulse_horizon: 100\n"
        "prototypes:\n"
        "  account: custom-account\n",
        encoding="utf-8",
    )

    config = load_config(str(config_file))

    assert config.database_url == "sqlite:///custom.db"
    assert config.batch_size == 50 and config.cache_pulse_horizon == 100
    assert config.prototypes.account == "custom-account"


def test_load_config_rejects_unknown_keys(tmp_path) -> None:
    """Unknown YAML keys should be reported."""
    config_file = tmp_path / "observer.yaml"
    config_file.write_text("batchsize: 50\n", encoding="utf-8")

    with pytest.raises(ObserverConfigError):
        load_config(str(config_file))


def test_load_config_requires_existing_file(tmp_path) -> None:
    """A missing config file should raise a config error."""
    with pytest.raises(ObserverConfigError):
        load_config(str(tmp_path / "missing.yaml"))
