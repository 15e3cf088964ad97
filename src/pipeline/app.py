"""Observer application wiring.

This module assembles the export client, storage, collectors and main
loop from one ObserverConfig.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from core.config import ObserverConfig
from core.logging_config import get_logger
from core.types import Cursor
from ledger.export_client import ExportClient, HttpExportClient
from ledger.fetcher import Fetcher
from pipeline.beautifier import Beautifier
from pipeline.initer import initial_cursor
from pipeline.manager import Manager
from store.storer import Storer, open_engine

_LOGGER = get_logger(__name__)


class ObserverApp:
    """Configured observer instance.

    Args:
        config: Runtime configuration.
        export_client: Optional export client; an HTTP client for
            ``config.export_url`` is created when omitted.
        engine: Optional database engine; one for ``config.database_url``
            is created when omitted.
    """

    def __init__(
        self,
        config: ObserverConfig,
        export_client: ExportClient | None = None,
        engine: Engine | None = None,
    ) -> None:
        self._config = config
        if engine is None:
            engine = open_engine(
                config.database_url,
                attempts=config.attempts,
                interval=config.attempt_interval,
            )
        self._engine = engine
        self._owned_client: HttpExportClient | None = None
        if export_client is None:
            self._owned_client = HttpExportClient(config.export_url, config.export_timeout)
            export_client = self._owned_client
        self._export_client = export_client
        self._storer = Storer(self._engine)
        self._manager: Manager | None = None

    def cursor(self) -> Cursor:
        """Return the resumption cursor stored in the database."""
        return initial_cursor(
            self._storer,
            attempts=self._config.attempts,
            interval=self._config.attempt_interval,
        )

    def run(self, once: bool = False) -> None:
        """Resume from storage and run the main loop.

        Raises:
            ObserverStartupError: If the starting cursor cannot be read.
        """
        fetcher = Fetcher(self._export_client, self._config.batch_size, self.cursor())
        beautifier = Beautifier(self._config.prototypes, self._config.cache_pulse_horizon)
        self._manager = Manager(fetcher, beautifier, self._storer, self._config.request_delay)
        self._manager.run(once=once)

    def stop(self) -> None:
        """Ask a running loop to stop after its current cycle."""
        if self._manager is not None:
            self._manager.stop()

    def close(self) -> None:
        if self._owned_client is not None:
            self._owned_client.close()
        self._engine.dispose()
        _LOGGER.info("observer_closed")
