import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from domain.records import Record, RecordType, new_record_id
from infrastructure.repositories import PersistenceGateway

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    LOADED = "loaded"
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    record_id: str | None = None
    revision: int = 0


ChangeListener = Callable[[ChangeEvent], None]


class DataStore:
    """In-memory owner of the record set.

    All mutations go through ``add``/``update``/``delete``. Each call marks the
    store dirty and notifies subscribers exactly once, after the change has
    been applied. ``snapshot`` hands out an immutable tuple of frozen records.
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway
        self._records: dict[str, Record] = {}
        self._listeners: list[ChangeListener] = []
        self._dirty = False
        self._revision = 0

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def revision(self) -> int:
        return self._revision

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load(self) -> None:
        """Replace the record set with the gateway's contents; never raises."""
        try:
            loaded = self._gateway.load()
        except Exception:
            logger.exception("Failed to load records, starting with no data")
            loaded = []

        records: dict[str, Record] = {}
        for record in loaded:
            if not record.id:
                logger.warning("Skipping loaded record without id: %s", record.description)
                continue
            if record.id in records:
                logger.warning("Skipping loaded record with duplicate id %s", record.id)
                continue
            records[record.id] = record

        self._records = records
        self._dirty = False
        self._revision += 1
        logger.info("Data store loaded with %s records", len(records))
        self._notify(ChangeEvent(ChangeKind.LOADED, None, self._revision))

    def add(self, record: Record) -> Record:
        """Store ``record`` under a freshly assigned id and return the stored copy."""
        record_id = new_record_id()
        while record_id in self._records:
            record_id = new_record_id()
        stored = record.with_id(record_id)
        self._records[record_id] = stored
        self._touch(ChangeKind.ADDED, record_id)
        return stored

    def update(self, record_id: str, **changes) -> Record | None:
        current = self._records.get(record_id)
        if current is None:
            logger.debug("Update ignored, record %s not found", record_id)
            return None
        updated = current.with_changes(**changes)
        self._records[record_id] = updated
        self._touch(ChangeKind.UPDATED, record_id)
        return updated

    def delete(self, record_id: str) -> bool:
        if self._records.pop(record_id, None) is None:
            logger.debug("Delete ignored, record %s not found", record_id)
            return False
        self._touch(ChangeKind.DELETED, record_id)
        return True

    def snapshot(self) -> tuple[Record, ...]:
        return tuple(self._records.values())

    def get(self, record_id: str) -> Record | None:
        return self._records.get(record_id)

    def find(self, record_type: RecordType | str) -> list[Record]:
        record_type = RecordType(record_type)
        return [record for record in self._records.values() if record.type == record_type]

    def mark_clean(self, revision: int | None = None) -> bool:
        """Clear the dirty flag if ``revision`` is still current (or not given)."""
        if revision is not None and revision != self._revision:
            return False
        self._dirty = False
        return True

    def _touch(self, kind: ChangeKind, record_id: str) -> None:
        self._dirty = True
        self._revision += 1
        self._notify(ChangeEvent(kind, record_id, self._revision))

    def _notify(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
