"""Runtime configuration model for the observer.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, cast

import yaml

from core.constants import (
    DEFAULT_ACCOUNT_PROTOTYPE,
    DEFAULT_ATTEMPT_INTERVAL,
    DEFAULT_ATTEMPTS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CACHE_PULSE_HORIZON,
    DEFAULT_DATABASE_URL,
    DEFAULT_DEPOSIT_PROTOTYPE,
    DEFAULT_EXPORT_TIMEOUT,
    DEFAULT_EXPORT_URL,
    DEFAULT_GROUP_PROTOTYPE,
    DEFAULT_MEMBER_PROTOTYPE,
    DEFAULT_MIGRATION_SHARD_PROTOTYPE,
    DEFAULT_REQUEST_DELAY,
    DEFAULT_USER_PROTOTYPE,
)
from core.errors import ObserverConfigError


@dataclass(frozen=True)
class PrototypeRefs:
    """Contract prototype references used by record predicates.

    Attributes:
        account: Account contract prototype.
        deposit: Deposit contract prototype.
        member: Member contract prototype.
        migration_shard: Migration shard contract prototype.
        group: Group contract prototype.
        user: User contract prototype (issues CreateGroup calls).
    """

    account: str = DEFAULT_ACCOUNT_PROTOTYPE
    deposit: str = DEFAULT_DEPOSIT_PROTOTYPE
    member: str = DEFAULT_MEMBER_PROTOTYPE
    migration_shard: str = DEFAULT_MIGRATION_SHARD_PROTOTYPE
    group: str = DEFAULT_GROUP_PROTOTYPE
    user: str = DEFAULT_USER_PROTOTYPE


@dataclass(frozen=True)
class ObserverConfig:
    """Validated runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL of the projection database.
        export_url: Base URL of the ledger export service.
        export_timeout: Export request timeout in seconds.
        batch_size: Record page size requested from the export.
        request_delay: Seconds to wait between pipeline cycles.
        attempts: Attempt limit for mandatory startup reads.
        attempt_interval: Seconds between startup read attempts.
        cache_pulse_horizon: Pulses a pending correlation may wait before
            eviction; zero keeps pending entries forever.
        prototypes: Contract prototype references.
    """

    database_url: str = DEFAULT_DATABASE_URL
    export_url: str = DEFAULT_EXPORT_URL
    export_timeout: float = DEFAULT_EXPORT_TIMEOUT
    batch_size: int = DEFAULT_BATCH_SIZE
    request_delay: float = DEFAULT_REQUEST_DELAY
    attempts: int = DEFAULT_ATTEMPTS
    attempt_interval: float = DEFAULT_ATTEMPT_INTERVAL
    cache_pulse_horizon: int = DEFAULT_CACHE_PULSE_HORIZON
    prototypes: PrototypeRefs = field(default_factory=PrototypeRefs)

    @classmethod
    def from_env(cls) -> "ObserverConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ObserverConfigError: If environment values are invalid.
        """
        config = cls(
            database_url=os.getenv("OBSERVER_DATABASE_URL", DEFAULT_DATABASE_URL),
            export_url=os.getenv("OBSERVER_EXPORT_URL", DEFAULT_EXPORT_URL),
            export_timeout=_parse_float(
                "OBSERVER_EXPORT_TIMEOUT", os.getenv("OBSERVER_EXPORT_TIMEOUT"), DEFAULT_EXPORT_TIMEOUT
            ),
            batch_size=_parse_int(
                "OBSERVER_BATCH_SIZE", os.getenv("OBSERVER_BATCH_SIZE"), DEFAULT_BATCH_SIZE
            ),
            request_delay=_parse_float(
                "OBSERVER_REQUEST_DELAY", os.getenv("OBSERVER_REQUEST_DELAY"), DEFAULT_REQUEST_DELAY
            ),
            attempts=_parse_int("OBSERVER_ATTEMPTS", os.getenv("OBSERVER_ATTEMPTS"), DEFAULT_ATTEMPTS),
            attempt_interval=_parse_float(
                "OBSERVER_ATTEMPT_INTERVAL",
                os.getenv("OBSERVER_ATTEMPT_INTERVAL"),
                DEFAULT_ATTEMPT_INTERVAL,
            ),
            cache_pulse_horizon=_parse_int(
                "OBSERVER_CACHE_PULSE_HORIZON",
                os.getenv("OBSERVER_CACHE_PULSE_HORIZON"),
                DEFAULT_CACHE_PULSE_HORIZON,
            ),
        )
        _validate(config)
        return config


def load_config(config_path: str | None = None) -> ObserverConfig:
    """Load config from the environment, overlaid with an optional YAML file.

    Args:
        config_path: Optional path to a YAML config file.

    Returns:
        Validated config object.

    Raises:
        ObserverConfigError: If the file is unreadable or values are invalid.
    """
    config = ObserverConfig.from_env()
    if config_path is None:
        return config
    payload = _load_yaml_mapping(config_path)
    prototypes_payload = payload.pop("prototypes", None)
    unknown_keys = sorted(set(payload) - _SCALAR_FIELDS.keys())
    if unknown_keys:
        raise ObserverConfigError(
            f"Unknown config keys in {config_path}: {', '.join(unknown_keys)}. "
            f"Supported keys: {', '.join(sorted(_SCALAR_FIELDS))}, prototypes."
        )
    overrides: dict[str, object] = {}
    for key, value in payload.items():
        overrides[key] = _coerce(key, value, _SCALAR_FIELDS[key])
    if prototypes_payload is not None:
        overrides["prototypes"] = _parse_prototypes(config_path, prototypes_payload)
    config = replace(config, **overrides)  # type: ignore[arg-type]
    _validate(config)
    return config


_SCALAR_FIELDS: dict[str, type] = {
    "database_url": str,
    "export_url": str,
    "export_timeout": float,
    "batch_size": int,
    "request_delay": float,
    "attempts": int,
    "attempt_interval": float,
    "cache_pulse_horizon": int,
}


def _load_yaml_mapping(config_path: str) -> dict[str, object]:
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise ObserverConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise ObserverConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise ObserverConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ObserverConfigError(
            f"Invalid config at {config_file}: expected a mapping, got {type(payload).__name__}."
        )
    return {str(key): value for key, value in payload.items()}


def _parse_prototypes(config_path: str, payload: object) -> PrototypeRefs:
    if not isinstance(payload, Mapping):
        raise ObserverConfigError(
            f"Invalid 'prototypes' in {config_path}: expected a mapping of name to reference."
        )
    known = set(PrototypeRefs.__dataclass_fields__)
    unknown = sorted(str(key) for key in payload if key not in known)
    if unknown:
        raise ObserverConfigError(
            f"Unknown prototypes in {config_path}: {', '.join(unknown)}. "
            f"Supported prototypes: {', '.join(sorted(known))}."
        )
    return PrototypeRefs(**{str(key): str(value) for key, value in payload.items()})


def _coerce(key: str, value: object, expected: type) -> object:
    if expected is str:
        return str(value)
    if expected is int:
        return _parse_int(key, str(value), 0)
    return _parse_float(key, str(value), 0.0)


def _parse_int(name: str, raw_value: str | None, default: int) -> int:
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as error:
        raise ObserverConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error


def _parse_float(name: str, raw_value: str | None, default: float) -> float:
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError as error:
        raise ObserverConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error


def _validate(config: ObserverConfig) -> None:
    if config.batch_size <= 0:
        raise ObserverConfigError(
            f"Invalid batch_size {config.batch_size}: expected a positive integer."
        )
    if config.attempts <= 0:
        raise ObserverConfigError(
            f"Invalid attempts {config.attempts}: expected a positive integer."
        )
    if config.cache_pulse_horizon < 0:
        raise ObserverConfigError(
            f"Invalid cache_pulse_horizon {config.cache_pulse_horizon}: expected zero or more."
        )
    if config.request_delay < 0 or config.attempt_interval < 0:
        raise ObserverConfigError("Delays must be non-negative numbers of seconds.")
