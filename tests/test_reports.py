"""
Tests for period aggregation and budget summaries.
"""

import random
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from finance_tracker.models import INCOME_CATEGORY, Granularity, LedgerState, Transaction
from finance_tracker.reports import (
    group_by_period,
    net_total,
    period_bounds,
    sort_chronologically,
    summarize_category_spending,
    week_start,
)


def make_tx(name, amount, category, when) -> Transaction:
    return Transaction(name=name, amount=Decimal(str(amount)), category=category, date=when)


class TestPeriodBounds:
    """Tests for period keys and boundaries."""

    def test_week_starts_on_sunday(self):
        # 2024-03-06 is a Wednesday
        assert week_start(date(2024, 3, 6)) == date(2024, 3, 3)
        assert week_start(date(2024, 3, 3)) == date(2024, 3, 3)
        assert week_start(date(2024, 3, 9)) == date(2024, 3, 3)
        assert week_start(date(2024, 3, 10)) == date(2024, 3, 10)

    def test_week_crossing_month_boundary(self):
        # 2024-03-01 is a Friday
        key, start, end = period_bounds(date(2024, 3, 1), Granularity.WEEKLY)
        assert key == "2024-02-25"
        assert start == date(2024, 2, 25)
        assert end == date(2024, 3, 2)

    def test_monthly_key_is_zero_padded(self):
        key, start, end = period_bounds(date(2024, 3, 17), Granularity.MONTHLY)
        assert key == "2024-03"
        assert start == date(2024, 3, 1)
        assert end == date(2024, 3, 31)

    def test_monthly_end_handles_leap_year(self):
        _, _, end = period_bounds(date(2024, 2, 10), Granularity.MONTHLY)
        assert end == date(2024, 2, 29)

    def test_daily_bounds(self):
        assert period_bounds(date(2024, 3, 1), Granularity.DAILY) == (
            "2024-03-01", date(2024, 3, 1), date(2024, 3, 1)
        )


class TestGroupByPeriod:
    """Tests for group_by_period."""

    def test_daily_buckets(self):
        """Test one income day and one expense day give +100 and -40."""
        transactions = [
            make_tx("Pay", 100, INCOME_CATEGORY, "2024-03-01T00:00:00Z"),
            make_tx("Misc", 40, "Diğer", "2024-03-02T00:00:00Z"),
        ]

        buckets = group_by_period(transactions, Granularity.DAILY)

        assert list(buckets) == ["2024-03-01", "2024-03-02"]
        assert buckets["2024-03-01"].total == Decimal("100")
        assert buckets["2024-03-01"].count == 1
        assert buckets["2024-03-02"].total == Decimal("-40")
        assert buckets["2024-03-02"].count == 1

    def test_weekly_bucket_and_label(self):
        transactions = [
            make_tx("a", 10, "Spor", "2024-03-03T12:00:00Z"),
            make_tx("b", 20, "Spor", "2024-03-06T12:00:00Z"),
            make_tx("c", 5, INCOME_CATEGORY, "2024-03-09T12:00:00Z"),
        ]

        buckets = group_by_period(transactions, "weekly")

        assert list(buckets) == ["2024-03-03"]
        bucket = buckets["2024-03-03"]
        assert bucket.end == date(2024, 3, 9)
        assert bucket.label == "2024-03-03 - 2024-03-09"
        assert bucket.total == Decimal("-25")
        assert bucket.income == Decimal("5")
        assert bucket.expense == Decimal("30")

    def test_monthly_buckets(self):
        transactions = [
            make_tx("a", 10, "Spor", "2024-03-31T23:00:00Z"),
            make_tx("b", 20, "Spor", "2024-04-01T01:00:00Z"),
        ]
        buckets = group_by_period(transactions, Granularity.MONTHLY)
        assert list(buckets) == ["2024-03", "2024-04"]
        assert buckets["2024-03"].label == "2024-03"

    def test_items_keep_log_order(self):
        first = make_tx("first", 1, "Spor", "2024-03-05T18:00:00Z")
        second = make_tx("second", 2, "Spor", "2024-03-05T08:00:00Z")
        buckets = group_by_period([first, second], "daily")
        assert buckets["2024-03-05"].items == [first, second]

    def test_keys_follow_first_appearance(self):
        """Test bucket order is insertion order, not date order."""
        transactions = [
            make_tx("late", 1, "Spor", "2024-05-01T00:00:00Z"),
            make_tx("early", 1, "Spor", "2024-01-01T00:00:00Z"),
        ]
        buckets = group_by_period(transactions, "monthly")
        assert list(buckets) == ["2024-05", "2024-01"]
        assert [b.key for b in sort_chronologically(buckets)] == ["2024-01", "2024-05"]

    def test_sort_accepts_iterable(self):
        transactions = [
            make_tx("b", 1, "Spor", "2024-03-02T00:00:00Z"),
            make_tx("a", 1, "Spor", "2024-03-01T00:00:00Z"),
        ]
        buckets = group_by_period(transactions, "daily")
        assert [b.key for b in sort_chronologically(list(buckets.values()))] == [
            "2024-03-01", "2024-03-02"
        ]

    def test_no_timezone_normalization(self):
        """Test the day comes from the timestamp's own offset."""
        plus_three = timezone(timedelta(hours=3))
        local = make_tx("late", 1, "Spor", datetime(2024, 3, 1, 23, 30, tzinfo=plus_three))
        utc = make_tx("same instant", 1, "Spor", datetime(2024, 3, 1, 20, 30, tzinfo=timezone.utc))
        next_day = make_tx("next", 1, "Spor", datetime(2024, 3, 2, 0, 30, tzinfo=plus_three))

        buckets = group_by_period([local, utc, next_day], "daily")

        assert list(buckets) == ["2024-03-01", "2024-03-02"]
        assert buckets["2024-03-01"].count == 2

    def test_empty_input(self):
        assert group_by_period([], "weekly") == {}

    def test_unknown_granularity_raises(self):
        with pytest.raises(ValueError):
            group_by_period([], "yearly")

    @pytest.mark.parametrize("granularity", list(Granularity))
    def test_bucket_totals_sum_to_net(self, granularity):
        """Test no transaction is lost or double counted."""
        rng = random.Random(42)
        start = datetime(2023, 12, 1, tzinfo=timezone.utc)
        transactions = [
            make_tx(
                f"tx{i}",
                Decimal(rng.randint(1, 100000)) / 100,
                rng.choice([INCOME_CATEGORY, "Spor", "Tatil"]),
                start + timedelta(hours=rng.randint(0, 24 * 120)),
            )
            for i in range(200)
        ]

        buckets = group_by_period(transactions, granularity)

        assert sum((b.total for b in buckets.values()), Decimal("0")) == net_total(transactions)
        assert sum(b.count for b in buckets.values()) == len(transactions)


class TestNetTotal:
    def test_net_total(self):
        transactions = [
            make_tx("Pay", 1000, INCOME_CATEGORY, "2024-01-05T00:00:00Z"),
            make_tx("Lunch", 50, "Dışarıda Yemek", "2024-01-06T00:00:00Z"),
        ]
        assert net_total(transactions) == Decimal("950")

    def test_net_total_empty(self):
        assert net_total([]) == Decimal("0")


class TestCategorySpendingSummary:
    """Tests for summarize_category_spending."""

    def _state(self) -> LedgerState:
        transactions = (
            make_tx("Pay", 1000, INCOME_CATEGORY, "2024-01-05T00:00:00Z"),
            make_tx("Gym", 100, "Spor", "2024-01-06T00:00:00Z"),
            make_tx("Shoes", 80, "Spor", "2024-01-07T00:00:00Z"),
            make_tx("Laptop", 900, "Elektronik", "2024-01-08T00:00:00Z"),
        )
        return LedgerState.default().model_copy(update={"expenses": transactions})

    def test_defaults_to_limited_categories(self):
        summary = summarize_category_spending(self._state())
        assert [item.category for item in summary] == [
            name for name, _ in LedgerState.default().limits_by_name().items()
        ]

    def test_spent_and_over_budget(self):
        summary = {item.category: item for item in summarize_category_spending(self._state())}
        assert summary["Spor"].spent == Decimal("180")
        assert summary["Spor"].limit == Decimal("150")
        assert summary["Spor"].is_over_budget is True
        assert summary["Tatil"].spent == Decimal("0")
        assert summary["Tatil"].is_over_budget is False

    def test_requested_category_without_limit(self):
        summary = summarize_category_spending(self._state(), ["Elektronik", INCOME_CATEGORY])
        assert summary[0].limit == Decimal("0")
        assert summary[0].spent == Decimal("900")
        assert summary[0].is_over_budget is False
        # Income never counts as spending
        assert summary[1].spent == Decimal("0")
