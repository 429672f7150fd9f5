import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet

from domain.records import RecordType
from domain.reports import LedgerReport

logger = logging.getLogger(__name__)

FONT_NAME = "Helvetica"


def _table_style(right_aligned_from: int) -> TableStyle:
    return TableStyle(
        [
            ("FONT", (0, 0), (-1, -1), FONT_NAME),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("ALIGN", (right_aligned_from, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ]
    )


def report_to_pdf(report: LedgerReport, filepath: str) -> None:
    data = [["Date", "Type", "Description", "Category", "Value"]]
    transactions = [
        record
        for record in report.records()
        if record.type in (RecordType.INCOME, RecordType.EXPENSE)
    ]
    for record in sorted(transactions, key=lambda r: r.date.isoformat() if r.date else ""):
        signed = record.amount if record.type == RecordType.INCOME else -record.amount
        data.append(
            [
                record.date.isoformat() if record.date else "",
                record.type.value.title(),
                record.description,
                report.label(record.category) if record.category else "",
                f"{signed:.2f}",
            ]
        )
    data.append(["INCOME", "", "", "", f"{report.total_income():.2f}"])
    data.append(["EXPENSES", "", "", "", f"{-report.total_expenses():.2f}"])
    data.append(["BALANCE", "", "", "", f"{report.balance():.2f}"])

    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        leftMargin=30,
        rightMargin=30,
        topMargin=30,
        bottomMargin=30,
    )
    available_width = A4[0] - 60
    col_widths = [
        available_width * 0.15,
        available_width * 0.12,
        available_width * 0.35,
        available_width * 0.23,
        available_width * 0.15,
    ]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(_table_style(4))

    budget_data = [["Category", "Budget", "Actual", "Used"]]
    for line in report.budget_usage():
        budget_data.append(
            [line.label, f"{line.budget:.2f}", f"{line.actual:.2f}", f"{line.percentage:.1f}%"]
        )
    budget_table = Table(
        budget_data,
        colWidths=[available_width * 0.40] + [available_width * 0.20] * 3,
        repeatRows=1,
    )
    budget_table.setStyle(_table_style(1))

    styles = getSampleStyleSheet()
    elems = [
        Paragraph(report.title, styles["Heading2"]),
        table,
        Spacer(1, 14),
        budget_table,
    ]
    doc.build(elems)
    logger.info("Report exported to %s", filepath)
