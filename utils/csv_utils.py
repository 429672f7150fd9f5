import csv
import logging
from collections.abc import Iterable
from datetime import date as dt_date
from typing import TextIO

from domain.records import Record
from domain.validation import parse_amount, parse_bool

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "id",
    "type",
    "date",
    "description",
    "value",
    "category",
    "account",
    "paymentMethod",
    "status",
    "notes",
    "relatedId",
]
# Trailing generator columns; readers of the base layout ignore them.
GENERATOR_COLUMNS = ["billingDay", "active"]
DATA_HEADERS = RECORD_COLUMNS + GENERATOR_COLUMNS

_TEXT_FIELDS = {
    "description": "description",
    "category": "category",
    "account": "account",
    "paymentMethod": "payment_method",
    "notes": "notes",
    "relatedId": "related_id",
}


def _safe_str(value) -> str:
    return "" if value is None else str(value)


def _format_value(value: float | None) -> str:
    if value is None:
        return ""
    return str(round(float(value), 2))


def record_to_row(record: Record) -> dict[str, str]:
    record_date = record.date.isoformat() if isinstance(record.date, dt_date) else ""
    return {
        "id": record.id,
        "type": record.type.value,
        "date": record_date,
        "description": record.description,
        "value": _format_value(record.value),
        "category": record.category,
        "account": record.account,
        "paymentMethod": record.payment_method,
        "status": record.status.value if record.status is not None else "",
        "notes": record.notes,
        "relatedId": record.related_id,
        "billingDay": _safe_str(record.billing_day),
        "active": "" if record.active is None else ("true" if record.active else "false"),
    }


def row_to_record(row: dict) -> Record:
    """Build a record from a CSV row; missing columns read as empty."""
    row = {str(key).strip(): value for key, value in row.items() if key is not None}

    def get(name: str) -> str:
        return _safe_str(row.get(name)).strip()

    record_id = get("id")
    if not record_id:
        raise ValueError("missing required field 'id'")

    def number(name: str) -> float | None:
        raw = get(name)
        parsed = parse_amount(raw, None)
        if raw and parsed is None:
            logger.warning("Discarding unreadable %s %r of record %s", name, raw, record_id)
        return parsed

    billing_day_raw = number("billingDay")
    kwargs = {name: get(column) for column, name in _TEXT_FIELDS.items()}
    return Record(
        id=record_id,
        type=get("type"),
        date=get("date"),
        value=number("value"),
        status=get("status") or None,
        billing_day=int(billing_day_raw) if billing_day_raw is not None else None,
        active=parse_bool(get("active"), None),
        **kwargs,
    )


def write_records(stream: TextIO, records: Iterable[Record]) -> int:
    writer = csv.DictWriter(stream, fieldnames=DATA_HEADERS, lineterminator="\n")
    writer.writeheader()
    count = 0
    for record in records:
        writer.writerow(record_to_row(record))
        count += 1
    return count


def read_records(stream: TextIO) -> list[Record]:
    """Parse every valid row; invalid rows and duplicate ids are skipped."""
    reader = csv.DictReader(stream)
    records: list[Record] = []
    seen_ids: set[str] = set()
    for line_number, row in enumerate(reader, start=2):
        if not any(_safe_str(value).strip() for key, value in row.items() if key is not None):
            continue
        try:
            record = row_to_record(row)
        except (TypeError, ValueError, OverflowError) as exc:
            logger.warning("Skipping invalid row %s: %s", line_number, exc)
            continue
        if record.id in seen_ids:
            logger.warning("Skipping duplicate id %s at row %s", record.id, line_number)
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records
