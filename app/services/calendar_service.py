from __future__ import annotations

from datetime import date

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import CalendarMemo, Order
from app.schemas import CalendarMemoRead, CalendarMonth, CalendarOrder
from app.utils import month_bounds


class CalendarService:
    """Per-day memos plus the orders shipping that month.

    Each day holds at most one PUBLIC and one ADMIN memo. ADMIN memos are
    only returned when the caller asks for them; who may ask is decided by
    the platform in front of this service.
    """

    def __init__(self, db: Session):
        self._db = db

    def _get(self, memo_date: date, visibility: str):
        return self._db.scalar(
            select(CalendarMemo).where(
                CalendarMemo.memo_date == memo_date,
                CalendarMemo.visibility == visibility,
            )
        )

    def month(self, month: str, include_admin: bool = False) -> CalendarMonth:
        start, end = month_bounds(month)

        memo_stmt = (
            select(CalendarMemo)
            .where(CalendarMemo.memo_date >= start, CalendarMemo.memo_date < end)
            .order_by(CalendarMemo.memo_date, CalendarMemo.visibility.desc())
        )
        if not include_admin:
            memo_stmt = memo_stmt.where(CalendarMemo.visibility == "PUBLIC")

        orders = self._db.scalars(
            select(Order)
            .where(Order.ship_date >= start, Order.ship_date < end, Order.status != "CANCELLED")
            .order_by(Order.ship_date, Order.id)
        )
        return CalendarMonth(
            month=start.strftime("%Y-%m"),
            memos=[CalendarMemoRead.model_validate(m) for m in self._db.scalars(memo_stmt)],
            orders=[CalendarOrder.model_validate(o) for o in orders],
        )

    def upsert_memo(self, memo_date: date, visibility: str, content: str) -> CalendarMemo:
        text = (content or "").strip()
        if not text:
            raise HTTPException(status_code=422, detail="content must not be empty")

        memo = self._get(memo_date, visibility)
        if memo is None:
            memo = CalendarMemo(memo_date=memo_date, visibility=visibility, content=text)
            self._db.add(memo)
        else:
            memo.content = text
        self._db.commit()
        self._db.refresh(memo)
        return memo

    def delete_memo(self, memo_date: date, visibility: str) -> None:
        memo = self._get(memo_date, visibility)
        if memo is None:
            raise HTTPException(status_code=404, detail="Memo not found")
        self._db.delete(memo)
        self._db.commit()
