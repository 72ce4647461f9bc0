from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

from fastapi import HTTPException

_BARCODE_STRIP = re.compile(r"[^0-9A-Z_-]")


def normalize_barcode(raw: str) -> str:
    """Upper-case, drop whitespace and anything outside 0-9 A-Z _ -."""
    code = re.sub(r"\s+", "", (raw or "").upper())
    return _BARCODE_STRIP.sub("", code)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def month_bounds(month: str) -> Tuple[date, date]:
    """First day of `YYYY-MM` and first day of the following month."""
    try:
        start = datetime.strptime(month.strip(), "%Y-%m").date()
    except ValueError as e:
        raise HTTPException(status_code=422, detail="month must be YYYY-MM") from e
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end
