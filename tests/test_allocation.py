from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from app.errors import AllocationConsistencyError, InsufficientStock
from app.services.allocation import available_total, fefo_sorted, plan_fefo_issue


@dataclass
class Lot:
    lot_id: int
    expiry_date: date
    stock_qty: int


def _lots() -> list[Lot]:
    return [
        Lot(lot_id=2, expiry_date=date(2026, 1, 20), stock_qty=10),
        Lot(lot_id=1, expiry_date=date(2026, 1, 10), stock_qty=5),
    ]


def test_split_takes_soonest_expiry_first():
    allocations = plan_fefo_issue(_lots(), 8, "OUT", barcode="SKU-001")

    assert [(a.lot_id, a.qty) for a in allocations] == [(1, 5), (2, 3)]
    assert all(a.type == "OUT" for a in allocations)


def test_single_lot_covers_request():
    allocations = plan_fefo_issue(_lots(), 4, "GIFT")

    assert [(a.lot_id, a.qty, a.type) for a in allocations] == [(1, 4, "GIFT")]


def test_allocations_sum_to_request_and_never_exceed_lot_stock():
    lots = _lots() + [Lot(lot_id=3, expiry_date=date(2026, 1, 15), stock_qty=2)]
    stock = {lot.lot_id: lot.stock_qty for lot in lots}

    for requested in range(1, available_total(lots) + 1):
        allocations = plan_fefo_issue(lots, requested, "OUT")
        assert sum(a.qty for a in allocations) == requested
        assert all(0 < a.qty <= stock[a.lot_id] for a in allocations)
        # Only the last lot touched may be partially drawn.
        for a in allocations[:-1]:
            assert a.qty == stock[a.lot_id]


def test_equal_expiry_breaks_ties_on_lot_id():
    lots = [
        Lot(lot_id=9, expiry_date=date(2026, 3, 1), stock_qty=3),
        Lot(lot_id=4, expiry_date=date(2026, 3, 1), stock_qty=3),
    ]

    assert [lot.lot_id for lot in fefo_sorted(lots)] == [4, 9]
    assert [a.lot_id for a in plan_fefo_issue(lots, 4, "OUT")] == [4, 9]


def test_empty_lots_are_skipped():
    lots = _lots() + [Lot(lot_id=7, expiry_date=date(2025, 12, 1), stock_qty=0)]

    allocations = plan_fefo_issue(lots, 2, "OUT")

    assert [a.lot_id for a in allocations] == [1]


def test_request_above_total_is_rejected():
    with pytest.raises(InsufficientStock) as exc:
        plan_fefo_issue(_lots(), 20, "OUT", barcode="SKU-001")

    assert exc.value.status_code == 409
    assert exc.value.detail == "insufficient stock: requested 20, available 15"


def test_no_stock_at_all_is_rejected():
    with pytest.raises(InsufficientStock) as exc:
        plan_fefo_issue([], 1, "OUT")

    assert exc.value.detail == "insufficient stock: requested 1, available 0"


def test_non_positive_request_is_a_programming_error():
    with pytest.raises(ValueError):
        plan_fefo_issue(_lots(), 0, "OUT")


class ShrinkingLot:
    """Reports stock for the availability check, then none during the walk."""

    def __init__(self, lot_id: int, expiry_date: date, readings: list[int]):
        self.lot_id = lot_id
        self.expiry_date = expiry_date
        self._readings = list(readings)

    @property
    def stock_qty(self) -> int:
        return self._readings.pop(0) if len(self._readings) > 1 else self._readings[0]


def test_remainder_after_walk_raises_consistency_error():
    lot = ShrinkingLot(lot_id=1, expiry_date=date(2026, 1, 10), readings=[5, 5, 0])

    with pytest.raises(AllocationConsistencyError) as exc:
        plan_fefo_issue([lot], 5, "OUT", barcode="SKU-001")

    assert exc.value.remaining == 5
    assert exc.value.requested == 5
