from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date as dt_date

from prettytable import PrettyTable

from .records import LEDGER_TYPES, Record, RecordStatus, RecordType
from .validation import month_prefix, parse_month

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class BudgetLine:
    category_id: str
    label: str
    budget: float
    actual: float

    @property
    def percentage(self) -> float:
        if self.budget <= 0:
            return 0.0
        return self.actual / self.budget * 100

    @property
    def exceeded(self) -> bool:
        return self.budget > 0 and self.actual > self.budget


class LedgerReport:
    """Read-side projections over a record snapshot.

    ``lookup`` holds the full snapshot for resolving references; ``records``
    is the (possibly month-filtered) working set.
    """

    def __init__(
        self,
        records: Iterable[Record],
        lookup: Iterable[Record] | None = None,
        period: str | None = None,
    ):
        self._records = list(records)
        self._lookup = {
            record.id: record
            for record in (self._records if lookup is None else lookup)
            if record.id
        }
        self._period = period

    @property
    def period(self) -> str | None:
        return self._period

    @property
    def title(self) -> str:
        if self._period:
            return f"Monthly statement ({self._period})"
        return "Statement"

    def records(self) -> list[Record]:
        return list(self._records)

    def month(self, prefix: str | dt_date) -> "LedgerReport":
        if isinstance(prefix, dt_date):
            prefix = month_prefix(prefix)
        year, month = parse_month(prefix)
        prefix = f"{year:04d}-{month:02d}"
        filtered = [record for record in self._records if record.month == prefix]
        return LedgerReport(filtered, self._lookup.values(), period=prefix)

    def label(self, record_id: str) -> str:
        """Display name of a referenced record, or the unknown placeholder."""
        if not record_id:
            return UNKNOWN_LABEL
        referenced = self._lookup.get(record_id)
        if referenced is None or not referenced.description:
            return UNKNOWN_LABEL
        return referenced.description

    def _of_type(self, record_type: RecordType) -> list[Record]:
        return [record for record in self._records if record.type == record_type]

    def expenses(self) -> list[Record]:
        return self._of_type(RecordType.EXPENSE)

    def incomes(self) -> list[Record]:
        return self._of_type(RecordType.INCOME)

    def total_expenses(self) -> float:
        return sum(record.amount for record in self.expenses())

    def total_income(self) -> float:
        return sum(record.amount for record in self.incomes())

    def balance(self) -> float:
        return self.total_income() - self.total_expenses()

    def expenses_by_category(self) -> dict[str, float]:
        totals: dict[str, float] = {}
        for record in self.expenses():
            label = self.label(record.category)
            totals[label] = totals.get(label, 0.0) + record.amount
        return {label: total for label, total in totals.items() if total > 0}

    def daily_expenses(self) -> list[tuple[dt_date, float]]:
        totals: dict[dt_date, float] = {}
        for record in self.expenses():
            if record.date is None:
                continue
            totals[record.date] = totals.get(record.date, 0.0) + record.amount
        return sorted(totals.items())

    def account_balances(self) -> dict[str, float]:
        balances = {
            record.id: 0.0 for record in self._lookup.values() if record.type == RecordType.ACCOUNT
        }
        for record in self._records:
            if record.account not in balances:
                continue
            if record.type == RecordType.INCOME:
                balances[record.account] += record.amount
            elif record.type == RecordType.EXPENSE:
                balances[record.account] -= record.amount
        return balances

    def account_invoice(
        self, account_id: str, month: str | dt_date | None = None
    ) -> tuple[float, list[Record]]:
        """Expenses charged to an account in a month, newest first, with their total."""
        if month is None:
            month = dt_date.today()
        view = self.month(month)
        charges = [record for record in view.expenses() if record.account == account_id]
        charges.sort(key=lambda record: record.date or dt_date.min, reverse=True)
        return sum(record.amount for record in charges), charges

    def budget_usage(self) -> list[BudgetLine]:
        budgets: dict[str, float] = {}
        for record in self._lookup.values():
            if record.type == RecordType.BUDGET_DISTRIBUTION and record.category not in budgets:
                budgets[record.category] = record.amount
        actuals: dict[str, float] = {}
        for record in self.expenses():
            actuals[record.category] = actuals.get(record.category, 0.0) + record.amount
        return [
            BudgetLine(
                category_id=category.id,
                label=category.description or UNKNOWN_LABEL,
                budget=budgets.get(category.id, 0.0),
                actual=actuals.get(category.id, 0.0),
            )
            for category in self._lookup.values()
            if category.type == RecordType.CATEGORY
        ]

    def open_ledger_entries(self, record_type: RecordType | str) -> list[Record]:
        record_type = RecordType(record_type)
        if record_type not in LEDGER_TYPES:
            raise ValueError(f"{record_type.value} is not a payable or receivable")
        entries = [
            record
            for record in self._lookup.values()
            if record.type == record_type and record.status != RecordStatus.PAID
        ]
        return sorted(entries, key=lambda record: record.date or dt_date.max)

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Date", "Type", "Description", "Category", "Account", "Value"]
        transactions = [
            record
            for record in self._records
            if record.type in (RecordType.INCOME, RecordType.EXPENSE)
        ]
        for record in sorted(transactions, key=lambda r: (r.date or dt_date.max, r.type.value)):
            amount = record.amount if record.type == RecordType.INCOME else -record.amount
            table.add_row(
                [
                    record.date.isoformat() if record.date else "",
                    record.type.value.title(),
                    record.description,
                    self.label(record.category) if record.category else "",
                    self.label(record.account) if record.account else "",
                    _money(amount),
                ]
            )
        table.add_row(["INCOME", "", "", "", "", _money(self.total_income())], divider=True)
        table.add_row(["EXPENSES", "", "", "", "", _money(-self.total_expenses())])
        table.add_row(["BALANCE", "", "", "", "", _money(self.balance())])
        return str(table)

    def budget_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Category", "Budget", "Actual", "Used"]
        for line in self.budget_usage():
            table.add_row(
                [line.label, _money(line.budget), _money(line.actual), f"{line.percentage:.1f}%"]
            )
        return str(table)


def _money(value: float) -> str:
    return f"{value:.2f}" if value >= 0 else f"({abs(value):.2f})"
