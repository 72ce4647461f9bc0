from __future__ import annotations

from fastapi import HTTPException


class ItemNotRegistered(HTTPException):
    def __init__(self, barcode: str):
        super().__init__(status_code=404, detail=f"item not registered: {barcode}")
        self.barcode = barcode


class InsufficientStock(HTTPException):
    def __init__(self, requested: int, available: int, barcode: str = ""):
        super().__init__(
            status_code=409,
            detail=f"insufficient stock: requested {requested}, available {available}",
        )
        self.requested = requested
        self.available = available
        self.barcode = barcode


class StockWriteError(HTTPException):
    """Infrastructure failure while recording movements. Safe to re-submit by hand."""

    def __init__(self, detail: str = "stock write failed, nothing was recorded"):
        super().__init__(status_code=503, detail=detail)


class AllocationConsistencyError(RuntimeError):
    """A FEFO walk left a remainder after the availability check had passed."""

    def __init__(self, barcode: str, requested: int, remaining: int):
        super().__init__(
            f"FEFO split left {remaining} of {requested} unallocated for {barcode}"
        )
        self.barcode = barcode
        self.requested = requested
        self.remaining = remaining


class AtomicIssueUnavailable(Exception):
    """The database offers no atomic issuance procedure."""
