from dataclasses import dataclass, fields, replace
from datetime import date as dt_date
from enum import Enum
from uuid import uuid4

from .validation import parse_bool, parse_ymd


class RecordType(str, Enum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    ACCOUNT = "ACCOUNT"
    CATEGORY = "CATEGORY"
    PAYMENT_METHOD = "PAYMENT_METHOD"
    PAYABLE = "PAYABLE"
    RECEIVABLE = "RECEIVABLE"
    BUDGET_DISTRIBUTION = "BUDGET_DISTRIBUTION"
    SUBSCRIPTION = "SUBSCRIPTION"
    SALARY_CONFIG = "SALARY_CONFIG"


class RecordStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


GENERATOR_TYPES = frozenset({RecordType.SUBSCRIPTION, RecordType.SALARY_CONFIG})
LEDGER_TYPES = frozenset({RecordType.PAYABLE, RecordType.RECEIVABLE})

# Fields an update may never touch.
_IMMUTABLE_FIELDS = frozenset({"id", "type"})


def new_record_id() -> str:
    return uuid4().hex


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().upper())
    except ValueError as exc:
        raise ValueError(f"Unknown record {name}: {value!r}") from exc


@dataclass(frozen=True)
class Record:
    type: RecordType | str
    id: str = ""
    date: dt_date | str | None = None
    description: str = ""
    value: float | None = None
    category: str = ""
    account: str = ""
    payment_method: str = ""
    status: RecordStatus | str | None = None
    notes: str = ""
    related_id: str = ""
    billing_day: int | None = None
    active: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _coerce_enum(RecordType, self.type, "type"))

        object.__setattr__(self, "id", str(self.id or "").strip())

        if isinstance(self.date, str):
            normalized_date = self.date.strip()
            object.__setattr__(self, "date", parse_ymd(normalized_date) if normalized_date else None)

        if self.value is not None:
            object.__setattr__(self, "value", float(self.value))

        if self.status is not None and self.status != "":
            object.__setattr__(self, "status", _coerce_enum(RecordStatus, self.status, "status"))
        else:
            object.__setattr__(self, "status", None)

        if self.billing_day is not None:
            object.__setattr__(self, "billing_day", int(self.billing_day))

        if self.active is not None:
            object.__setattr__(self, "active", parse_bool(self.active, None))

        for name in ("description", "category", "account", "payment_method", "notes", "related_id"):
            object.__setattr__(self, name, str(getattr(self, name) or ""))

    @property
    def month(self) -> str | None:
        """``YYYY-MM`` of the record date, or None for undated records."""
        if self.date is None:
            return None
        return self.date.strftime("%Y-%m")

    @property
    def is_active(self) -> bool:
        return self.active is True

    @property
    def amount(self) -> float:
        if self.value is None:
            return 0.0
        return float(self.value)

    def with_id(self, record_id: str) -> "Record":
        return replace(self, id=record_id)

    def with_changes(self, **changes) -> "Record":
        """Return a copy with ``changes`` merged in; unset fields are preserved."""
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise ValueError(f"Unknown record fields: {sorted(unknown)}")
        allowed = {key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS}
        if not allowed:
            return self
        return replace(self, **allowed)


_FIELD_NAMES = frozenset(field.name for field in fields(Record))
