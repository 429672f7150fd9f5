from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date as dt_date

from config import AUTOSAVE_DEBOUNCE_SECONDS, AUTOSAVE_RETRY_SECONDS
from infrastructure.repositories import CsvFileRecordRepository, PersistenceGateway
from utils.backup_utils import create_backup

from .data_store import DataStore
from .reconciler import RecurringReconciler
from .scheduler import PersistenceScheduler

logger = logging.getLogger(__name__)


class LedgerSession:
    """Explicit wiring of gateway, store, recurring reconciler and autosave.

    Host code opens the session, calls ``poll`` from its event loop and
    closes it on exit so pending changes are flushed.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        today_provider: Callable[[], dt_date] = dt_date.today,
        debounce_seconds: float = AUTOSAVE_DEBOUNCE_SECONDS,
        retry_seconds: float | None = AUTOSAVE_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        backup: bool = True,
    ) -> None:
        self._gateway = gateway
        self._backup = backup
        self.store = DataStore(gateway)
        self.reconciler = RecurringReconciler(self.store, today_provider)
        self.scheduler = PersistenceScheduler(
            self.store,
            gateway,
            debounce_seconds=debounce_seconds,
            retry_seconds=retry_seconds,
            clock=clock,
        )
        self._opened = False

    @classmethod
    def for_csv(cls, data_path: str, **kwargs) -> "LedgerSession":
        return cls(CsvFileRecordRepository(data_path), **kwargs)

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> "LedgerSession":
        if self._opened:
            return self
        if self._backup and isinstance(self._gateway, CsvFileRecordRepository):
            try:
                create_backup(self._gateway.file_path)
            except OSError:
                logger.exception("Backup of %s failed", self._gateway.file_path)
        self.scheduler.attach()
        self.reconciler.attach()
        # Loading notifies the reconciler, which runs the first recurring pass.
        self.store.load()
        self._opened = True
        return self

    def poll(self) -> bool:
        return self.scheduler.poll()

    def close(self) -> bool:
        if not self._opened:
            return True
        saved = self.scheduler.flush()
        if not saved:
            logger.error("Closing with unsaved changes: %s", self.scheduler.last_error)
        self.reconciler.detach()
        self.scheduler.detach()
        self._opened = False
        return saved

    def __enter__(self) -> "LedgerSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
