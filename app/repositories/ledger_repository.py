from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.models import LedgerEntry, Order, Partner


class LedgerRepository:
    def __init__(self, db: Session):
        self._db = db

    def add(self, obj: LedgerEntry | Order) -> None:
        self._db.add(obj)

    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        return self._db.get(LedgerEntry, entry_id)

    def get_order(self, order_id: int) -> Optional[Order]:
        return self._db.scalar(
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.shipments))
            .where(Order.id == order_id)
        )

    def _entry_partner_clause(self, partner: Partner):
        clauses = [LedgerEntry.partner_id == partner.id]
        if partner.business_no:
            clauses.append(LedgerEntry.business_no == partner.business_no)
        if partner.name:
            clauses.append(LedgerEntry.counterparty_name == partner.name)
        return or_(*clauses)

    def _order_partner_clause(self, partner: Partner):
        return or_(Order.partner_id == partner.id, Order.customer_name == partner.name)

    def orders_between(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        partner: Optional[Partner] = None,
        before: Optional[date] = None,
    ) -> list[Order]:
        stmt = select(Order).options(selectinload(Order.lines)).order_by(Order.ship_date, Order.id)
        if date_from is not None:
            stmt = stmt.where(Order.ship_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Order.ship_date <= date_to)
        if before is not None:
            stmt = stmt.where(Order.ship_date < before)
        if partner is not None:
            stmt = stmt.where(self._order_partner_clause(partner))
        return list(self._db.scalars(stmt))

    def entries_between(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        partner: Optional[Partner] = None,
        before: Optional[date] = None,
    ) -> list[LedgerEntry]:
        stmt = select(LedgerEntry).order_by(LedgerEntry.entry_date, LedgerEntry.entry_ts, LedgerEntry.id)
        if date_from is not None:
            stmt = stmt.where(LedgerEntry.entry_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(LedgerEntry.entry_date <= date_to)
        if before is not None:
            stmt = stmt.where(LedgerEntry.entry_date < before)
        if partner is not None:
            stmt = stmt.where(self._entry_partner_clause(partner))
        return list(self._db.scalars(stmt))

    def search_entries(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        direction: Optional[str] = None,
        method: Optional[str] = None,
        category: Optional[str] = None,
        query: str = "",
        partner_id: Optional[int] = None,
        include_void: bool = True,
        limit: int = 50,
    ) -> list[LedgerEntry]:
        stmt = select(LedgerEntry).order_by(
            LedgerEntry.entry_date.desc(), LedgerEntry.entry_ts.desc(), LedgerEntry.id.desc()
        )
        if partner_id is not None:
            stmt = stmt.where(LedgerEntry.partner_id == partner_id)
        if date_from is not None:
            stmt = stmt.where(LedgerEntry.entry_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(LedgerEntry.entry_date <= date_to)
        if direction:
            stmt = stmt.where(LedgerEntry.direction == direction)
        if method:
            stmt = stmt.where(LedgerEntry.method == method)
        if category:
            stmt = stmt.where(LedgerEntry.category.ilike(f"%{category.strip()}%"))
        if not include_void:
            stmt = stmt.where(LedgerEntry.status != "VOID")

        q = query.replace(",", " ").strip()
        if q:
            like = f"%{q}%"
            stmt = stmt.where(
                or_(
                    LedgerEntry.counterparty_name.ilike(like),
                    LedgerEntry.business_no.ilike(like),
                    LedgerEntry.summary.ilike(like),
                    LedgerEntry.memo.ilike(like),
                )
            )
        return list(self._db.scalars(stmt.limit(limit)))
