import csv
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

from domain.records import Record
from utils.csv_utils import read_records, write_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    success: bool
    error: str | None = None


class PersistenceGateway(ABC):
    @abstractmethod
    def load(self) -> list[Record]:
        """Load the full record set. Returns an empty list when nothing is stored."""
        pass

    @abstractmethod
    def save(self, records: Iterable[Record]) -> SaveResult:
        """Overwrite the whole durable state with ``records``."""
        pass


class CsvFileRecordRepository(PersistenceGateway):
    _path_locks: dict[str, threading.RLock] = {}
    _path_locks_guard = threading.Lock()

    def __init__(self, file_path: str = "data.csv"):
        self._file_path = str(file_path)
        abs_path = os.path.abspath(self._file_path)
        with self._path_locks_guard:
            if abs_path not in self._path_locks:
                self._path_locks[abs_path] = threading.RLock()
            self._lock = self._path_locks[abs_path]

    @property
    def file_path(self) -> str:
        return self._file_path

    def load(self) -> list[Record]:
        with self._lock:
            if not os.path.exists(self._file_path):
                logger.info("Data file %s not found, starting empty", self._file_path)
                return []
            try:
                with open(self._file_path, encoding="utf-8", newline="") as f:
                    records = read_records(f)
            except (OSError, UnicodeDecodeError, csv.Error) as exc:
                logger.warning(
                    "Failed to load CSV data from %s, using empty dataset: %s",
                    self._file_path,
                    exc,
                )
                return []
        logger.info("Loaded %s records from %s", len(records), self._file_path)
        return records

    def save(self, records: Iterable[Record]) -> SaveResult:
        records = list(records)
        with self._lock:
            directory = os.path.dirname(self._file_path) or "."
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(prefix=".records_", suffix=".csv", dir=directory)
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    write_records(f, records)
                os.replace(tmp_path, self._file_path)
            except OSError as exc:
                logger.error("Failed to save %s records to %s: %s", len(records), self._file_path, exc)
                return SaveResult(success=False, error=str(exc))
            finally:
                try:
                    if tmp_path is not None and os.path.exists(tmp_path):
                        os.remove(tmp_path)
                except OSError:
                    logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)
        logger.info("Saved %s records to %s", len(records), self._file_path)
        return SaveResult(success=True)
