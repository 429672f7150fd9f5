import logging
from collections.abc import Callable
from datetime import date as dt_date

from domain.records import Record
from domain.recurring import generate_recurring

from .data_store import ChangeEvent, DataStore

logger = logging.getLogger(__name__)

# A pass that added records is followed by at most this many re-checks.
MAX_EXTRA_PASSES = 1


class RecurringReconciler:
    """Keeps generated subscription charges and salary deposits in sync with the store.

    Runs the recurring rules after every store change and feeds the drafts
    back through ``DataStore.add``. Notifications caused by its own additions
    are ignored while a pass is in progress.
    """

    def __init__(
        self,
        store: DataStore,
        today_provider: Callable[[], dt_date] = dt_date.today,
    ) -> None:
        self._store = store
        self._today_provider = today_provider
        self._running = False
        self._attached = False

    @property
    def is_running(self) -> bool:
        return self._running

    def attach(self) -> None:
        if not self._attached:
            self._store.subscribe(self._on_change)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self._store.unsubscribe(self._on_change)
            self._attached = False

    def run(self, today: dt_date | None = None) -> list[Record]:
        if self._running:
            return []
        today = today or self._today_provider()
        created: list[Record] = []
        self._running = True
        try:
            for _ in range(1 + MAX_EXTRA_PASSES):
                drafts = generate_recurring(self._store.snapshot(), today)
                if not drafts:
                    break
                for draft in drafts:
                    stored = self._store.add(draft)
                    created.append(stored)
                    logger.info(
                        "Generated %s %s for %s dated %s (value=%s)",
                        stored.type.value,
                        stored.id,
                        stored.related_id,
                        stored.date,
                        stored.value,
                    )
            else:
                logger.warning("Recurring generation did not settle after %s passes", 1 + MAX_EXTRA_PASSES)
        finally:
            self._running = False
        return created

    def _on_change(self, event: ChangeEvent) -> None:
        if self._running:
            return
        self.run()
