"""Observer exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class ObserverError(Exception):
    """Base exception for all observer failures."""


class ObserverConfigError(ObserverError):
    """Raised for invalid runtime configuration."""


class ObserverFetchError(ObserverError):
    """Raised when the ledger export stream cannot be read."""


class ObserverDecodeError(ObserverError):
    """Raised for malformed record payloads and contract call data."""


class ObserverStoreError(ObserverError):
    """Raised when a batch cannot be persisted."""


class ObserverStartupError(ObserverError):
    """Raised when the resumption cursor cannot be established."""
