from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol, Sequence

from app.errors import AllocationConsistencyError, InsufficientStock
from app.schemas import Allocation


class LotCandidate(Protocol):
    lot_id: int
    expiry_date: date
    stock_qty: int


def fefo_sorted(lots: Iterable[LotCandidate]) -> list[LotCandidate]:
    return sorted(lots, key=lambda lot: (lot.expiry_date, lot.lot_id))


def available_total(lots: Iterable[LotCandidate]) -> int:
    return sum(max(int(lot.stock_qty), 0) for lot in lots)


def plan_fefo_issue(
    lots: Sequence[LotCandidate],
    requested: int,
    issue_type: str,
    barcode: str = "",
) -> list[Allocation]:
    """Split `requested` across lots, soonest expiry first.

    Raises InsufficientStock before anything is planned when the lots cannot
    cover the request. A remainder after the walk means the lots changed
    underneath us and raises AllocationConsistencyError instead.
    """
    if requested < 1:
        raise ValueError("requested must be at least 1")

    candidates = [lot for lot in fefo_sorted(lots) if int(lot.stock_qty) > 0]
    total = available_total(candidates)
    if not candidates or total < requested:
        raise InsufficientStock(requested=requested, available=total, barcode=barcode)

    remaining = requested
    allocations: list[Allocation] = []
    for lot in candidates:
        if remaining <= 0:
            break
        can = max(int(lot.stock_qty), 0)
        if can <= 0:
            continue
        take = min(can, remaining)
        allocations.append(
            Allocation(lot_id=lot.lot_id, expiry_date=lot.expiry_date, qty=take, type=issue_type)
        )
        remaining -= take

    if remaining != 0:
        raise AllocationConsistencyError(barcode=barcode, requested=requested, remaining=remaining)
    return allocations
