import logging
import os
from collections.abc import Iterable

from openpyxl import Workbook

from domain.records import Record, RecordType
from domain.reports import LedgerReport

from .csv_utils import DATA_HEADERS, record_to_row

logger = logging.getLogger(__name__)


def _ensure_parent(filepath: str) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)


def records_to_xlsx(records: Iterable[Record], filepath: str) -> int:
    """Dump the full record set with the durable column layout."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Records"
    ws.append(DATA_HEADERS)
    count = 0
    for record in records:
        row = record_to_row(record)
        values = [row[column] for column in DATA_HEADERS]
        if record.value is not None:
            values[DATA_HEADERS.index("value")] = round(record.value, 2)
        ws.append(values)
        count += 1
    _ensure_parent(filepath)
    wb.save(filepath)
    logger.info("Exported %s records to %s", count, filepath)
    return count


def report_to_xlsx(report: LedgerReport, filepath: str) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Statement"
    ws.append([report.title])
    ws.append(["Date", "Type", "Description", "Category", "Account", "Value"])
    transactions = [
        record
        for record in report.records()
        if record.type in (RecordType.INCOME, RecordType.EXPENSE)
    ]
    for record in sorted(transactions, key=lambda r: r.date.isoformat() if r.date else ""):
        signed = record.amount if record.type == RecordType.INCOME else -record.amount
        ws.append(
            [
                record.date.isoformat() if record.date else "",
                record.type.value.title(),
                record.description,
                report.label(record.category) if record.category else "",
                report.label(record.account) if record.account else "",
                round(signed, 2),
            ]
        )
    ws.append(["INCOME", "", "", "", "", round(report.total_income(), 2)])
    ws.append(["EXPENSES", "", "", "", "", round(-report.total_expenses(), 2)])
    ws.append(["BALANCE", "", "", "", "", round(report.balance(), 2)])

    bycat_ws = wb.create_sheet("By Category")
    bycat_ws.append(["Category", "Total"])
    for label, total in sorted(report.expenses_by_category().items()):
        bycat_ws.append([label, round(total, 2)])

    budget_ws = wb.create_sheet("Budget")
    budget_ws.append(["Category", "Budget", "Actual", "Used %"])
    for line in report.budget_usage():
        budget_ws.append(
            [line.label, round(line.budget, 2), round(line.actual, 2), round(line.percentage, 1)]
        )

    _ensure_parent(filepath)
    wb.save(filepath)
    logger.info("Report exported to %s", filepath)
