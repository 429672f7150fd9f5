from datetime import date

import pytest

from domain.records import Record, RecordStatus, RecordType
from domain.reports import UNKNOWN_LABEL, LedgerReport


def _records():
    return [
        Record(id="A1", type=RecordType.ACCOUNT, description="Bank"),
        Record(id="A2", type=RecordType.ACCOUNT, description="Card"),
        Record(id="C1", type=RecordType.CATEGORY, description="Food"),
        Record(id="C2", type=RecordType.CATEGORY, description="Home"),
        Record(id="B1", type=RecordType.BUDGET_DISTRIBUTION, category="C1", value=100.0),
        Record(id="I1", type=RecordType.INCOME, date="2025-03-05", value=1000.0, account="A1"),
        Record(
            id="E1",
            type=RecordType.EXPENSE,
            date="2025-03-06",
            description="Market",
            value=80.0,
            category="C1",
            account="A2",
        ),
        Record(
            id="E2",
            type=RecordType.EXPENSE,
            date="2025-03-06",
            description="Dinner",
            value=40.0,
            category="C1",
            account="A2",
        ),
        Record(
            id="E3",
            type=RecordType.EXPENSE,
            date="2025-03-20",
            value=200.0,
            category="C2",
            account="A1",
        ),
        Record(
            id="E4",
            type=RecordType.EXPENSE,
            date="2025-02-20",
            value=15.0,
            category="GONE",
            account="A2",
        ),
        Record(id="P1", type=RecordType.PAYABLE, date="2025-04-10", value=900.0, status=RecordStatus.PENDING),
        Record(id="P2", type=RecordType.PAYABLE, date="2025-03-10", value=50.0, status=RecordStatus.PENDING),
        Record(id="P3", type=RecordType.PAYABLE, date="2025-03-01", value=70.0, status=RecordStatus.PAID),
    ]


class TestLedgerReport:
    def test_totals(self):
        report = LedgerReport(_records())
        assert report.total_income() == 1000.0
        assert report.total_expenses() == 335.0
        assert report.balance() == 665.0

    def test_empty(self):
        report = LedgerReport([])
        assert report.total_expenses() == 0.0
        assert report.expenses_by_category() == {}
        assert report.budget_usage() == []

    def test_month_filter_keeps_lookup(self):
        report = LedgerReport(_records()).month("2025-03")
        assert report.period == "2025-03"
        assert report.title == "Monthly statement (2025-03)"
        assert [record.id for record in report.expenses()] == ["E1", "E2", "E3"]
        assert report.label("A2") == "Card"

    def test_month_accepts_date(self):
        report = LedgerReport(_records()).month(date(2025, 2, 1))
        assert [record.id for record in report.expenses()] == ["E4"]

    def test_month_rejects_bad_prefix(self):
        with pytest.raises(ValueError):
            LedgerReport(_records()).month("March")

    def test_label_resolution(self):
        report = LedgerReport(_records())
        assert report.label("C1") == "Food"
        assert report.label("missing") == UNKNOWN_LABEL
        assert report.label("") == UNKNOWN_LABEL
        assert report.label("B1") == UNKNOWN_LABEL

    def test_expenses_by_category_uses_labels(self):
        report = LedgerReport(_records())
        assert report.expenses_by_category() == {"Food": 120.0, "Home": 200.0, UNKNOWN_LABEL: 15.0}

    def test_daily_expenses_sorted(self):
        report = LedgerReport(_records()).month("2025-03")
        assert report.daily_expenses() == [(date(2025, 3, 6), 120.0), (date(2025, 3, 20), 200.0)]

    def test_account_balances(self):
        balances = LedgerReport(_records()).account_balances()
        assert balances == {"A1": 800.0, "A2": -135.0}

    def test_account_invoice_newest_first(self):
        total, charges = LedgerReport(_records()).account_invoice("A2", "2025-03")
        assert total == 120.0
        assert [charge.id for charge in charges] == ["E1", "E2"]

    def test_budget_usage(self):
        lines = {line.category_id: line for line in LedgerReport(_records()).month("2025-03").budget_usage()}
        food = lines["C1"]
        assert food.label == "Food"
        assert food.budget == 100.0
        assert food.actual == 120.0
        assert food.percentage == pytest.approx(120.0)
        assert food.exceeded
        home = lines["C2"]
        assert home.budget == 0.0
        assert home.percentage == 0.0
        assert not home.exceeded

    def test_open_ledger_entries_sorted_by_due_date(self):
        report = LedgerReport(_records())
        assert [record.id for record in report.open_ledger_entries("PAYABLE")] == ["P2", "P1"]
        assert report.open_ledger_entries(RecordType.RECEIVABLE) == []

    def test_open_ledger_entries_rejects_other_types(self):
        with pytest.raises(ValueError):
            LedgerReport(_records()).open_ledger_entries(RecordType.EXPENSE)

    def test_as_table(self):
        table = LedgerReport(_records()).month("2025-03").as_table()
        assert "Market" in table
        assert "Food" in table
        assert "(80.00)" in table
        assert "1000.00" in table
        assert "BALANCE" in table
        assert "680.00" in table

    def test_budget_table(self):
        table = LedgerReport(_records()).month("2025-03").budget_table()
        assert "Food" in table
        assert "120.0%" in table
