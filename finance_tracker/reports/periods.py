"""
Period Aggregation

Buckets a transaction log into days, weeks or months for reporting.

DESIGN DECISION: Aggregation is a pure function over the log.
It reads an already-committed snapshot and has no persistence side
effects, so it is safe to run while a persist is still in flight.

Keys:
- daily:   YYYY-MM-DD
- weekly:  YYYY-MM-DD of the Sunday the week starts on
- monthly: YYYY-MM (zero padded, so keys sort chronologically as strings)

Dates are taken in the zone the stored timestamp carries. No timezone
normalization happens: 23:30 at +03:00 and 20:30 UTC of the same instant
can land in different days.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Union

from finance_tracker.models.transaction import Granularity, PeriodBucket, Transaction


def week_start(day: date) -> date:
    """Most recent Sunday on or before `day`."""
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def period_bounds(day: date, granularity: Granularity) -> tuple[str, date, date]:
    """Key, first day and last day of the period containing `day`."""
    if granularity == Granularity.DAILY:
        return day.isoformat(), day, day

    if granularity == Granularity.WEEKLY:
        start = week_start(day)
        return start.isoformat(), start, start + timedelta(days=6)

    start = day.replace(day=1)
    last_day = calendar.monthrange(day.year, day.month)[1]
    return start.strftime("%Y-%m"), start, day.replace(day=last_day)


def group_by_period(
    transactions: Iterable[Transaction],
    granularity: Union[Granularity, str],
) -> dict[str, PeriodBucket]:
    """
    Group transactions into period buckets.

    Each bucket's total is the signed net of its items (income adds,
    expenses subtract). Items keep their original log order, and the
    returned dict is ordered by first appearance of each period, not
    by date. Use sort_chronologically() for display order.

    Raises:
        ValueError: If granularity is not daily, weekly or monthly
    """
    granularity = Granularity(granularity)
    buckets: dict[str, PeriodBucket] = {}

    for tx in transactions:
        key, start, end = period_bounds(tx.date.date(), granularity)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = PeriodBucket(key=key, granularity=granularity, start=start, end=end)
            buckets[key] = bucket
        bucket.items.append(tx)
        bucket.total += tx.signed_amount

    return buckets


def sort_chronologically(buckets: Union[dict[str, PeriodBucket], Iterable[PeriodBucket]]) -> list[PeriodBucket]:
    """Buckets ordered by period start, oldest first."""
    if isinstance(buckets, dict):
        buckets = buckets.values()
    return sorted(buckets, key=lambda bucket: bucket.start)


def net_total(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expense over the given transactions."""
    return sum((tx.signed_amount for tx in transactions), Decimal("0"))
