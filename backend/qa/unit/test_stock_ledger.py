"""
Tests for the stock ledger reconstructor
"""
import logging
import random
from datetime import date, timedelta

import pytest

from gstdesk.application.stock_ledger import (
    StockEvent, reconstruct_ledger, absolute_initial_stock, paginate,
)
from gstdesk.domain.enums import LedgerGranularity, MovementKind

PER_EVENT = LedgerGranularity.PER_EVENT
PER_DAY = LedgerGranularity.PER_DAY


def d(day: int, month: int = 1) -> date:
    return date(2024, month, day)


def history():
    purchases = [
        StockEvent(d(3), 20, "PB-1"),
        StockEvent(d(5), 30, "PB-2"),
        StockEvent(d(5), 5, "PB-3"),
        StockEvent(d(20), 12, "PB-4"),
    ]
    sales = [
        StockEvent(d(4), 7, "INV-1"),
        StockEvent(d(5), 9, "INV-2"),
        StockEvent(d(12), 4, "INV-3"),
        StockEvent(d(12), 6, "INV-3"),
    ]
    return purchases, sales


class TestStockLedger:

    def test_concrete_scenario(self):
        ledger = reconstruct_ledger(
            50,
            [StockEvent(d(5), 30, "PB-1")],
            [StockEvent(d(10), 10, "INV-1")],
            granularity=PER_EVENT,
        )
        assert ledger.absolute_initial_stock == 30
        assert [(r.date, r.opening_stock, r.purchase_qty, r.sale_qty, r.closing_stock) for r in ledger.rows] == [
            (d(5), 30, 30, 0, 60),
            (d(10), 60, 0, 10, 50),
        ]
        assert ledger.closing_stock == 50
        assert ledger.rows[0].total == 60
        assert not ledger.drift.detected

    @pytest.mark.parametrize("granularity", [PER_EVENT, PER_DAY])
    def test_balance_continuity_and_terminal_equality(self, granularity):
        purchases, sales = history()
        ledger = reconstruct_ledger(100, purchases, sales, granularity=granularity)
        for earlier, later in zip(ledger.rows, ledger.rows[1:]):
            assert earlier.closing_stock == later.opening_stock
        assert ledger.rows[-1].closing_stock == 100

    def test_no_events(self):
        ledger = reconstruct_ledger(42, [], [])
        assert ledger.rows == []
        assert ledger.absolute_initial_stock == 42
        assert ledger.opening_stock == ledger.closing_stock == 42

    @pytest.mark.parametrize("granularity", [PER_EVENT, PER_DAY])
    def test_order_independence(self, granularity):
        purchases, sales = history()
        expected = reconstruct_ledger(100, purchases, sales, granularity=granularity)
        rng = random.Random(7)
        for _ in range(10):
            p, s = purchases[:], sales[:]
            rng.shuffle(p)
            rng.shuffle(s)
            assert reconstruct_ledger(100, p, s, granularity=granularity).rows == expected.rows

    def test_event_before_window_only_moves_opening(self):
        start = d(10)
        purchases = [StockEvent(start - timedelta(days=1), 15, "PB-1"), StockEvent(d(11), 5, "PB-2")]
        sales = [StockEvent(d(15), 3, "INV-1")]
        ledger = reconstruct_ledger(40, purchases, sales, window_start=start, granularity=PER_EVENT)

        assert ledger.absolute_initial_stock == 40 - (20 - 3)
        assert ledger.opening_stock == 23 + 15
        assert [r.reference for r in ledger.rows] == ["PB-2", "INV-1"]
        assert ledger.closing_stock == 40

    def test_window_bounds_are_inclusive(self):
        purchases = [StockEvent(d(1), 1, "A"), StockEvent(d(5), 1, "B"), StockEvent(d(9), 1, "C")]
        ledger = reconstruct_ledger(3, purchases, [], window_start=d(1), window_end=d(9), granularity=PER_EVENT)
        assert [r.reference for r in ledger.rows] == ["A", "B", "C"]

    def test_window_before_any_event(self):
        purchases, sales = history()
        ledger = reconstruct_ledger(100, purchases, sales, window_start=d(1, 12).replace(year=2023), window_end=d(31, 12).replace(year=2023))
        assert ledger.rows == []
        assert ledger.opening_stock == ledger.closing_stock == ledger.absolute_initial_stock

    def test_window_end_excludes_later_events(self):
        purchases, sales = history()
        ledger = reconstruct_ledger(100, purchases, sales, window_end=d(10), granularity=PER_EVENT)
        assert all(r.date <= d(10) for r in ledger.rows)
        # 20 + 30 + 5 - 7 - 9 moved on top of the initial stock
        assert ledger.closing_stock == ledger.absolute_initial_stock + 39

    def test_absolute_initial_stock_ignores_window(self):
        purchases, sales = history()
        expected = absolute_initial_stock(100, purchases, sales)
        ledger = reconstruct_ledger(100, purchases, sales, window_start=d(10), window_end=d(15))
        assert ledger.absolute_initial_stock == expected

    def test_per_event_same_day_puts_purchases_first(self):
        ledger = reconstruct_ledger(
            10,
            [StockEvent(d(5), 4, "PB-9")],
            [StockEvent(d(5), 6, "INV-1")],
            granularity=PER_EVENT,
        )
        assert [r.kind for r in ledger.rows] == [MovementKind.PURCHASE, MovementKind.SALE]
        assert [(r.opening_stock, r.closing_stock) for r in ledger.rows] == [(12, 16), (16, 10)]

    def test_per_day_nets_purchases_and_sales(self):
        purchases, sales = history()
        ledger = reconstruct_ledger(100, purchases, sales, granularity=PER_DAY)
        day5 = next(r for r in ledger.rows if r.date == d(5))
        assert day5.purchase_qty == 35
        assert day5.sale_qty == 9
        assert day5.closing_stock == day5.opening_stock + 26
        assert day5.reference == "PB-2, PB-3, INV-2"
        assert day5.kind is None

    def test_per_day_deduplicates_references(self):
        purchases, sales = history()
        ledger = reconstruct_ledger(100, purchases, sales, granularity=PER_DAY)
        day12 = next(r for r in ledger.rows if r.date == d(12))
        assert day12.reference == "INV-3"
        assert day12.sale_qty == 10

    def test_granularities_agree_on_closing(self):
        purchases, sales = history()
        per_event = reconstruct_ledger(100, purchases, sales, window_start=d(4), granularity=PER_EVENT)
        per_day = reconstruct_ledger(100, purchases, sales, window_start=d(4), granularity=PER_DAY)
        assert per_event.opening_stock == per_day.opening_stock
        assert per_event.closing_stock == per_day.closing_stock
        assert len(per_day.rows) < len(per_event.rows)

    def test_drift_is_reported_not_clamped(self, caplog):
        # Current stock lower than the recorded history allows
        with caplog.at_level(logging.WARNING, logger="gstdesk.application.stock_ledger"):
            ledger = reconstruct_ledger(
                5,
                [StockEvent(d(1), 10, "PB-1")],
                [StockEvent(d(2), 2, "INV-1")],
                granularity=PER_EVENT,
            )
        assert ledger.absolute_initial_stock == -3
        assert ledger.rows[0].opening_stock == -3
        assert ledger.drift.negative_initial_stock
        assert ledger.drift.negative_balance
        assert ledger.closing_stock == 5
        assert "drift" in caplog.text

    def test_negative_intermediate_balance_flagged(self):
        ledger = reconstruct_ledger(
            10,
            [StockEvent(d(10), 10, "PB-1")],
            [StockEvent(d(2), 5, "INV-1")],
            granularity=PER_EVENT,
        )
        assert ledger.absolute_initial_stock == 5
        assert [r.closing_stock for r in ledger.rows] == [0, 10]
        assert not ledger.drift.detected

        ledger = reconstruct_ledger(
            5,
            [StockEvent(d(10), 10, "PB-1")],
            [StockEvent(d(2), 5, "INV-1")],
            granularity=PER_EVENT,
        )
        assert ledger.rows[0].closing_stock == -5
        assert ledger.drift.negative_balance
        assert not ledger.drift.negative_initial_stock


class TestPaginate:

    def test_pages(self):
        rows = list(range(45))
        page = paginate(rows, 3, 20)
        assert page.items == list(range(40, 45))
        assert page.total_count == 45
        assert page.total_pages == 3

    def test_page_past_end_is_empty(self):
        page = paginate([1, 2, 3], 5, 10)
        assert page.items == []
        assert page.total_pages == 1

    def test_empty(self):
        page = paginate([], 1, 20)
        assert page.items == []
        assert page.total_pages == 0

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0)])
    def test_invalid_arguments(self, page, size):
        with pytest.raises(ValueError):
            paginate([1], page, size)
