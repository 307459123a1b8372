"""
Stock Ledger - Opening/closing balance reconstruction
======================================================

Rebuilds the movement ledger of one product from its current on-hand
quantity and its full history of purchases and sales.

Precondition: ``current_quantity`` already reflects every purchase and sale
passed in (the product snapshot and the event log are read together). When
they disagree the reconstruction still runs; the inconsistency shows up as a
negative implied initial stock or negative balances and is reported in
``StockLedger.drift``, never corrected.

Pure functions, no I/O:
- Totals over the full history give the absolute initial stock
- Events before the window give the window opening stock
- Events inside the window are merged chronologically (per event or per day)
- One pass carries the running balance

Usage:
    from datetime import date
    from gstdesk.application.stock_ledger import StockEvent, reconstruct_ledger

    ledger = reconstruct_ledger(
        current_quantity=50,
        purchases=[StockEvent(date(2024, 1, 5), 30, "PB-1")],
        sales=[StockEvent(date(2024, 1, 10), 10, "INV-7")],
    )
    ledger.absolute_initial_stock  # 30
    [r.closing_stock for r in ledger.rows]  # [60, 50]
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..domain.enums import LedgerGranularity, MovementKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockEvent:
    """A purchase or a sale of one product on one date."""
    date: date
    quantity: int
    reference: Optional[str] = None


@dataclass(frozen=True)
class StockMovement:
    date: date
    reference: str
    opening_stock: int
    purchase_qty: int
    sale_qty: int
    closing_stock: int
    kind: Optional[MovementKind] = None  # None for per-day rows

    @property
    def total(self) -> int:
        """Stock available during the row before sales go out."""
        return self.opening_stock + self.purchase_qty


@dataclass(frozen=True)
class LedgerDrift:
    negative_initial_stock: bool = False
    negative_balance: bool = False

    @property
    def detected(self) -> bool:
        return self.negative_initial_stock or self.negative_balance


@dataclass(frozen=True)
class StockLedger:
    absolute_initial_stock: int
    opening_stock: int
    rows: List[StockMovement] = field(default_factory=list)
    drift: LedgerDrift = field(default_factory=LedgerDrift)

    @property
    def closing_stock(self) -> int:
        return self.rows[-1].closing_stock if self.rows else self.opening_stock


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


def _in_window(d: date, start: Optional[date], end: Optional[date]) -> bool:
    return (start is None or d >= start) and (end is None or d <= end)


def _sum(events: Iterable[StockEvent]) -> int:
    return sum(e.quantity for e in events)


def absolute_initial_stock(current_quantity: int, purchases: Sequence[StockEvent], sales: Sequence[StockEvent]) -> int:
    """Stock that existed before any recorded event. Independent of any date filter."""
    return current_quantity - (_sum(purchases) - _sum(sales))


def opening_stock_for_window(
    initial_stock: int,
    purchases: Sequence[StockEvent],
    sales: Sequence[StockEvent],
    window_start: Optional[date],
) -> int:
    if window_start is None:
        return initial_stock
    purchased_before = _sum(p for p in purchases if p.date < window_start)
    sold_before = _sum(s for s in sales if s.date < window_start)
    return initial_stock + purchased_before - sold_before


def _per_event_rows(purchases: Sequence[StockEvent], sales: Sequence[StockEvent], opening: int) -> List[StockMovement]:
    # Same date: purchases before sales, then reference, then quantity
    tagged = [(p.date, 0, p.reference or "", p.quantity, i, MovementKind.PURCHASE, p) for i, p in enumerate(purchases)]
    tagged += [(s.date, 1, s.reference or "", s.quantity, i, MovementKind.SALE, s) for i, s in enumerate(sales)]
    tagged.sort(key=lambda t: t[:5])

    rows = []
    balance = opening
    for event_date, _, reference, _, _, kind, event in tagged:
        purchase_qty = event.quantity if kind == MovementKind.PURCHASE else 0
        sale_qty = event.quantity if kind == MovementKind.SALE else 0
        closing = balance + purchase_qty - sale_qty
        rows.append(StockMovement(
            date=event_date,
            reference=reference,
            opening_stock=balance,
            purchase_qty=purchase_qty,
            sale_qty=sale_qty,
            closing_stock=closing,
            kind=kind,
        ))
        balance = closing
    return rows


def _per_day_rows(purchases: Sequence[StockEvent], sales: Sequence[StockEvent], opening: int) -> List[StockMovement]:
    # Sorting the inputs first keeps the reference order independent of input order
    days: dict = {}
    for kind, events in ((MovementKind.PURCHASE, purchases), (MovementKind.SALE, sales)):
        for event in sorted(events, key=lambda e: (e.date, e.reference or "")):
            day = days.setdefault(event.date, {"purchase": 0, "sale": 0, "references": []})
            day["purchase" if kind == MovementKind.PURCHASE else "sale"] += event.quantity
            if event.reference and event.reference not in day["references"]:
                day["references"].append(event.reference)

    rows = []
    balance = opening
    for day_date in sorted(days):
        day = days[day_date]
        closing = balance + day["purchase"] - day["sale"]
        rows.append(StockMovement(
            date=day_date,
            reference=", ".join(day["references"]),
            opening_stock=balance,
            purchase_qty=day["purchase"],
            sale_qty=day["sale"],
            closing_stock=closing,
        ))
        balance = closing
    return rows


def reconstruct_ledger(
    current_quantity: int,
    purchases: Sequence[StockEvent],
    sales: Sequence[StockEvent],
    window_start: Optional[date] = None,
    window_end: Optional[date] = None,
    granularity: LedgerGranularity = LedgerGranularity.PER_DAY,
) -> StockLedger:
    """
    Reconstructs the opening -> change -> closing ledger of a product.

    Args:
        current_quantity: on-hand stock now
        purchases: every purchase of the product, any order
        sales: every sale of the product (dated by its invoice), any order
        window_start: first reported date, inclusive (None = unbounded)
        window_end: last reported date, inclusive (None = unbounded)
        granularity: one row per event, or one netted row per calendar day

    Returns:
        StockLedger with rows in ascending date order. Closing stock is never
        clamped at zero.
    """
    initial = absolute_initial_stock(current_quantity, purchases, sales)
    opening = opening_stock_for_window(initial, purchases, sales, window_start)

    window_purchases = [p for p in purchases if _in_window(p.date, window_start, window_end)]
    window_sales = [s for s in sales if _in_window(s.date, window_start, window_end)]

    if granularity == LedgerGranularity.PER_EVENT:
        rows = _per_event_rows(window_purchases, window_sales, opening)
    else:
        rows = _per_day_rows(window_purchases, window_sales, opening)

    drift = LedgerDrift(
        negative_initial_stock=initial < 0,
        negative_balance=opening < 0 or any(r.closing_stock < 0 for r in rows),
    )
    if drift.detected:
        logger.warning(
            "Stock ledger drift: current=%s initial=%s opening=%s negative_balance=%s",
            current_quantity, initial, opening, drift.negative_balance,
        )

    return StockLedger(absolute_initial_stock=initial, opening_stock=opening, rows=rows, drift=drift)


def paginate(rows: Sequence, page: int, page_size: int) -> Page:
    """1-based page slice; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start = (page - 1) * page_size
    return Page(items=list(rows[start:start + page_size]), page=page, page_size=page_size, total_count=len(rows))
