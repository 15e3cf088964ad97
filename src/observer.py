"""Public surface of the ledger observer.

This module provides a stable import path for embedding the observer.
It re-exports the application, configuration and exchanged models.
"""

from __future__ import annotations

from core.config import ObserverConfig, PrototypeRefs, load_config
from core.errors import ObserverError
from core.types import Cursor
from ledger.export_client import ExportClient, HttpExportClient
from pipeline.app import ObserverApp
from pipeline.batch import Batch, RawBatch

__all__ = [
    "Batch",
    "Cursor",
    "ExportClient",
    "HttpExportClient",
    "ObserverApp",
    "ObserverConfig",
    "ObserverError",
    "PrototypeRefs",
    "RawBatch",
    "load_config",
]
