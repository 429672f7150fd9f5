import calendar
import math
import re
from datetime import date


def parse_ymd(value: str | date) -> date:
    if isinstance(value, date):
        return value
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValueError("Invalid date format")
    year, month, day = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    last_day = calendar.monthrange(year, month)[1]
    if not (1 <= day <= last_day):
        raise ValueError("Invalid day")
    return date(year, month, day)


def parse_month(value: str) -> tuple[int, int]:
    period = (value or "").strip()
    if not re.fullmatch(r"\d{4}-\d{2}", period):
        raise ValueError("Invalid month format. Use YYYY-MM")
    year, month = map(int, period.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    return year, month


def month_prefix(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def clamp_billing_day(billing_day: int | None, year: int, month: int) -> int:
    """Fit a billing day into the given month (31 in February becomes 28/29)."""
    last_day = calendar.monthrange(year, month)[1]
    if billing_day is None:
        return 1
    return max(1, min(int(billing_day), last_day))


def parse_bool(value, default: bool | None = None) -> bool | None:
    if isinstance(value, bool):
        return value
    raw = str(value if value is not None else "").strip().lower()
    if raw in {"true", "1", "yes", "y"}:
        return True
    if raw in {"false", "0", "no", "n"}:
        return False
    return default


def parse_amount(value, default: float | None = None) -> float | None:
    try:
        raw = str(value).strip().replace(",", ".")
        if not raw:
            return default
        amount = float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(amount):
        return default
    return amount
