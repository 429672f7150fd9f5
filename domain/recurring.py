"""Recurring record rules.

Subscriptions and the salary configuration are generator records: each one
produces at most one ordinary transaction per calendar month. Generated
records point back at their generator through ``related_id``, and the pair
``(related_id, YYYY-MM)`` is the idempotency key, so the functions here can
be called any number of times against the persisted record set without
producing duplicates.

Everything in this module is pure: it reads a snapshot and returns drafts
(records without ids). Callers add the drafts through the data store.
"""

import calendar
import logging
from collections.abc import Iterable
from datetime import date as dt_date
from datetime import timedelta

from .records import Record, RecordType
from .validation import clamp_billing_day, month_prefix

logger = logging.getLogger(__name__)

SUBSCRIPTION_NOTE = "Generated automatically from subscription"
SALARY_NOTE = "Generated automatically from salary configuration"
DEFAULT_SALARY_DESCRIPTION = "Salary"

SATURDAY = 5
SUNDAY = 6


def last_business_day(year: int, month: int) -> dt_date:
    """Last calendar day of the month, moved back to Friday on weekends."""
    last = dt_date(year, month, calendar.monthrange(year, month)[1])
    if last.weekday() == SATURDAY:
        return last - timedelta(days=1)
    if last.weekday() == SUNDAY:
        return last - timedelta(days=2)
    return last


def generated_keys(records: Iterable[Record], record_type: RecordType) -> set[tuple[str, str]]:
    return {
        (record.related_id, record.month)
        for record in records
        if record.type == record_type and record.related_id and record.month
    }


def pending_subscription_charges(records: Iterable[Record], today: dt_date) -> list[Record]:
    records = list(records)
    current_month = month_prefix(today)
    existing = generated_keys(records, RecordType.EXPENSE)

    drafts: list[Record] = []
    for subscription in records:
        if subscription.type != RecordType.SUBSCRIPTION or not subscription.is_active:
            continue
        if not subscription.id:
            logger.warning("Skipping subscription without id: %s", subscription.description)
            continue
        key = (subscription.id, current_month)
        if key in existing:
            continue

        billing_day = clamp_billing_day(subscription.billing_day, today.year, today.month)
        if billing_day != subscription.billing_day:
            logger.debug(
                "Subscription %s billing day %s adjusted to %s for %s",
                subscription.id,
                subscription.billing_day,
                billing_day,
                current_month,
            )
        if today.day < billing_day:
            continue

        drafts.append(
            Record(
                type=RecordType.EXPENSE,
                date=dt_date(today.year, today.month, billing_day),
                description=subscription.description,
                value=subscription.value,
                category=subscription.category,
                account=subscription.account,
                related_id=subscription.id,
                notes=SUBSCRIPTION_NOTE,
            )
        )
        existing.add(key)
    return drafts


def salary_config(records: Iterable[Record]) -> Record | None:
    return next((record for record in records if record.type == RecordType.SALARY_CONFIG), None)


def pending_salary_deposit(records: Iterable[Record], today: dt_date) -> list[Record]:
    records = list(records)
    config = salary_config(records)
    if config is None or not config.is_active or not config.id:
        return []
    if (config.id, month_prefix(today)) in generated_keys(records, RecordType.INCOME):
        return []

    # Computed from today's own year and month, so the day comparison below
    # never crosses a month boundary.
    payday = last_business_day(today.year, today.month)
    if today.day < payday.day:
        return []

    return [
        Record(
            type=RecordType.INCOME,
            date=payday,
            description=config.description or DEFAULT_SALARY_DESCRIPTION,
            value=config.value,
            category=config.category,
            account=config.account,
            related_id=config.id,
            notes=SALARY_NOTE,
        )
    ]


def generate_recurring(records: Iterable[Record], today: dt_date) -> list[Record]:
    """Return the recurring records missing for ``today``'s month."""
    records = list(records)
    return pending_subscription_charges(records, today) + pending_salary_deposit(records, today)
