import logging
from datetime import date as dt_date

from domain.errors import DomainError
from domain.records import LEDGER_TYPES, Record, RecordStatus, RecordType
from domain.recurring import DEFAULT_SALARY_DESCRIPTION, salary_config

from .data_store import DataStore

logger = logging.getLogger(__name__)

PAYMENT_METHODS = (
    ("PM_CREDIT", "Credit"),
    ("PM_DEBIT", "Debit"),
    ("PM_PIX", "Pix"),
    ("PM_CASH", "Cash"),
    ("PM_INVOICE", "Invoice"),
)

NAMED_ENTITY_TYPES = frozenset(
    {RecordType.ACCOUNT, RecordType.CATEGORY, RecordType.PAYMENT_METHOD}
)


def default_payment_methods() -> list[Record]:
    """Built-in payment methods; fixed ids, never stored."""
    return [
        Record(id=method_id, type=RecordType.PAYMENT_METHOD, description=name)
        for method_id, name in PAYMENT_METHODS
    ]


class CreateExpense:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(
        self,
        *,
        date: str | dt_date,
        value: float,
        description: str = "",
        category: str = "",
        account: str = "",
        payment_method: str = "",
        notes: str = "",
    ) -> Record:
        record = self._store.add(
            Record(
                type=RecordType.EXPENSE,
                date=date,
                value=value,
                description=description,
                category=category,
                account=account,
                payment_method=payment_method,
                notes=notes,
            )
        )
        logger.info(
            "Expense record created date=%s value=%s category=%s", record.date, value, category
        )
        return record


class CreateIncome:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(
        self,
        *,
        date: str | dt_date,
        value: float,
        description: str = "",
        category: str = "",
        account: str = "",
        notes: str = "",
    ) -> Record:
        record = self._store.add(
            Record(
                type=RecordType.INCOME,
                date=date,
                value=value,
                description=description,
                category=category,
                account=account,
                notes=notes,
            )
        )
        logger.info(
            "Income record created date=%s value=%s account=%s", record.date, value, account
        )
        return record


class CreateNamedEntity:
    """Accounts, categories and payment methods carry their name in ``description``."""

    def __init__(self, store: DataStore):
        self._store = store

    def execute(self, *, record_type: RecordType | str, name: str, value: float | None = None) -> Record:
        record_type = RecordType(record_type)
        if record_type not in NAMED_ENTITY_TYPES:
            raise DomainError(f"{record_type.value} is not a named entity type")
        name = (name or "").strip()
        if not name:
            raise ValueError("Name is required")
        return self._store.add(Record(type=record_type, description=name, value=value))


class CreateSubscription:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(
        self,
        *,
        description: str,
        value: float,
        billing_day: int,
        category: str = "",
        account: str = "",
        active: bool = True,
    ) -> Record:
        billing_day = int(billing_day)
        if not (1 <= billing_day <= 31):
            raise ValueError("Billing day must be between 1 and 31")
        record = self._store.add(
            Record(
                type=RecordType.SUBSCRIPTION,
                description=description,
                value=value,
                billing_day=billing_day,
                category=category,
                account=account,
                active=active,
            )
        )
        logger.info("Subscription created id=%s billing_day=%s", record.id, billing_day)
        return record


class ConfigureSalary:
    """Create or update the single salary configuration."""

    def __init__(self, store: DataStore):
        self._store = store

    def execute(
        self,
        *,
        value: float,
        account: str,
        active: bool = True,
        description: str = DEFAULT_SALARY_DESCRIPTION,
        category: str = "",
    ) -> Record:
        payload = {
            "description": description,
            "value": value,
            "account": account,
            "active": active,
            "category": category,
        }
        existing = salary_config(self._store.snapshot())
        if existing is not None:
            updated = self._store.update(existing.id, **payload)
            logger.info("Salary configuration %s updated", existing.id)
            return updated
        record = self._store.add(Record(type=RecordType.SALARY_CONFIG, **payload))
        logger.info("Salary configuration %s created", record.id)
        return record


class SetCategoryBudget:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(self, *, category_id: str, value: float) -> Record:
        existing = next(
            (
                record
                for record in self._store.find(RecordType.BUDGET_DISTRIBUTION)
                if record.category == category_id
            ),
            None,
        )
        if existing is not None:
            return self._store.update(existing.id, value=value)
        return self._store.add(
            Record(type=RecordType.BUDGET_DISTRIBUTION, category=category_id, value=value)
        )


class CreateLedgerEntry:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(
        self,
        *,
        record_type: RecordType | str,
        due_date: str | dt_date,
        value: float,
        description: str,
        notes: str = "",
    ) -> Record:
        record_type = RecordType(record_type)
        if record_type not in LEDGER_TYPES:
            raise DomainError(f"{record_type.value} is not a payable or receivable")
        return self._store.add(
            Record(
                type=record_type,
                date=due_date,
                value=value,
                description=description,
                notes=notes,
                status=RecordStatus.PENDING,
            )
        )


class ToggleLedgerStatus:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(self, record_id: str) -> Record | None:
        record = self._store.get(record_id)
        if record is None:
            return None
        if record.type not in LEDGER_TYPES:
            raise DomainError(f"Record {record_id} is not a payable or receivable")
        new_status = (
            RecordStatus.PENDING if record.status == RecordStatus.PAID else RecordStatus.PAID
        )
        return self._store.update(record_id, status=new_status)


class DeleteRecord:
    def __init__(self, store: DataStore):
        self._store = store

    def execute(self, record_id: str) -> bool:
        deleted = self._store.delete(record_id)
        if deleted:
            logger.info("Record %s deleted", record_id)
        return deleted
