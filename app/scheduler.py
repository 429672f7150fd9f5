import logging
import time
from collections.abc import Callable
from enum import Enum

from config import AUTOSAVE_DEBOUNCE_SECONDS, AUTOSAVE_RETRY_SECONDS
from infrastructure.repositories import PersistenceGateway, SaveResult

from .data_store import ChangeEvent, DataStore

logger = logging.getLogger(__name__)


class DebounceTimer:
    """Cancellable one-shot timer driven by ``poll`` from the host loop.

    ``arm`` starts the countdown and re-arming restarts it. The callback fires
    on the first ``poll`` at or after the deadline, then the timer disarms.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self._interval = float(interval)
        self._callback = callback
        self._clock = clock
        self._deadline: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def is_armed(self) -> bool:
        return self._deadline is not None

    def arm(self, interval: float | None = None) -> None:
        delay = self._interval if interval is None else float(interval)
        self._deadline = self._clock() + delay

    def reset(self) -> None:
        self.arm()

    def cancel(self) -> None:
        self._deadline = None

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def poll(self) -> bool:
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._callback()
        return True


class SchedulerState(str, Enum):
    CLEAN = "clean"
    DIRTY_PENDING = "dirty_pending"


class PersistenceScheduler:
    """Coalesces bursts of store mutations into one debounced save."""

    def __init__(
        self,
        store: DataStore,
        gateway: PersistenceGateway,
        *,
        debounce_seconds: float = AUTOSAVE_DEBOUNCE_SECONDS,
        retry_seconds: float | None = AUTOSAVE_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._retry_seconds = retry_seconds
        self._timer = DebounceTimer(debounce_seconds, self._on_timer, clock)
        self._attached = False
        self._last_error: str | None = None

    @property
    def state(self) -> SchedulerState:
        if self._store.is_dirty:
            return SchedulerState.DIRTY_PENDING
        return SchedulerState.CLEAN

    @property
    def timer(self) -> DebounceTimer:
        return self._timer

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def attach(self) -> None:
        if not self._attached:
            self._store.subscribe(self._on_change)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self._store.unsubscribe(self._on_change)
            self._attached = False
        self._timer.cancel()

    def poll(self) -> bool:
        return self._timer.poll()

    def flush(self) -> bool:
        """Write the current snapshot now if the store is dirty."""
        self._timer.cancel()
        if not self._store.is_dirty:
            return True
        revision = self._store.revision
        snapshot = self._store.snapshot()
        try:
            result = self._gateway.save(snapshot)
        except Exception as exc:
            logger.exception("Save raised, keeping %s records in memory", len(snapshot))
            result = SaveResult(success=False, error=str(exc))

        if not result.success:
            self._last_error = result.error or "unknown error"
            logger.error(
                "Failed to persist %s records, data is not yet durably saved: %s",
                len(snapshot),
                self._last_error,
            )
            if self._retry_seconds is not None:
                self._timer.arm(self._retry_seconds)
            return False

        self._last_error = None
        self._store.mark_clean(revision)
        logger.info("Auto-saved %s records", len(snapshot))
        return True

    def _on_change(self, event: ChangeEvent) -> None:
        if not self._store.is_dirty:
            self._timer.cancel()
            return
        self._timer.reset()
        logger.debug("Autosave armed by %s of %s", event.kind.value, event.record_id)

    def _on_timer(self) -> None:
        self.flush()
