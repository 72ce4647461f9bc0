from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.business_config import BusinessConfig, load_business_config
from app.models import LedgerEntry, Partner
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.ledger_repository import LedgerRepository
from app.schemas import LedgerEntryCreate, LedgerEntryRead, LedgerList, TradeProjection
from app.services.projection import closing_balance, ledger_rows, order_rows, project_trades
from app.utils import utc_now

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, db: Session, config: Optional[BusinessConfig] = None):
        self._db = db
        self._config = config or load_business_config()
        self._catalog = CatalogRepository(db)
        self._ledger = LedgerRepository(db)

    def _partner(self, partner_id: Optional[int]) -> Optional[Partner]:
        if partner_id is None:
            return None
        partner = self._catalog.get_partner(partner_id)
        if partner is None:
            raise HTTPException(status_code=404, detail="Partner not found")
        return partner

    def create_entry(self, payload: LedgerEntryCreate) -> LedgerEntry:
        partner = self._partner(payload.partner_id)
        category = (payload.category or "").strip() or self._config.ledger.default_category
        direction = payload.direction or self._config.ledger.direction_for(category)

        counterparty = (payload.counterparty_name or "").strip() or (partner.name if partner else None)
        business_no = (payload.business_no or "").strip() or (partner.business_no if partner else None)

        entry = LedgerEntry(
            entry_date=payload.entry_date,
            entry_ts=payload.entry_ts or utc_now(),
            direction=direction,
            amount=payload.amount,
            category=category,
            method=payload.method,
            partner_id=partner.id if partner else None,
            counterparty_name=counterparty,
            business_no=business_no,
            summary=(payload.summary or "").strip() or None,
            memo=(payload.memo or "").strip() or None,
            supply_amount=payload.supply_amount,
            vat_amount=payload.vat_amount,
            vat_type=payload.vat_type,
        )
        self._ledger.add(entry)
        self._db.commit()
        self._db.refresh(entry)
        return entry

    def list_entries(
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
    ) -> LedgerList:
        entries = self._ledger.search_entries(
            date_from=date_from,
            date_to=date_to,
            direction=direction,
            method=method,
            category=category,
            query=query,
            partner_id=partner_id,
            include_void=include_void,
            limit=limit,
        )
        posted = [e for e in entries if e.status != "VOID"]
        total_in = sum(int(e.amount) for e in posted if e.direction == "IN")
        total_out = sum(int(e.amount) for e in posted if e.direction == "OUT")
        return LedgerList(
            entries=[LedgerEntryRead.model_validate(e) for e in entries],
            total_in=total_in,
            total_out=total_out,
            net=total_in - total_out,
        )

    def void_entry(self, entry_id: int) -> LedgerEntry:
        entry = self._ledger.get_entry(entry_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Ledger entry not found")
        if entry.status == "VOID":
            raise HTTPException(status_code=409, detail="Ledger entry already void")
        entry.status = "VOID"
        self._db.commit()
        self._db.refresh(entry)
        logger.info("ledger entry %s voided", entry_id)
        return entry

    def ledger_book(
        self,
        date_from: date,
        date_to: date,
        partner_id: Optional[int] = None,
    ) -> TradeProjection:
        """Ledger entries only, with running balances seeded from everything before `date_from`."""
        if date_to < date_from:
            raise HTTPException(status_code=422, detail="date_to must not be before date_from")
        partner = self._partner(partner_id)

        before = ledger_rows(self._ledger.entries_between(partner=partner, before=date_from))
        opening = closing_balance(0, before)
        rows = ledger_rows(self._ledger.entries_between(date_from, date_to, partner=partner))
        return project_trades(opening, rows)

    def trade_view(
        self,
        date_from: date,
        date_to: date,
        partner_id: Optional[int] = None,
        include_opening: bool = True,
    ) -> TradeProjection:
        """Orders (outflows) and ledger entries for a period, newest first."""
        if date_to < date_from:
            raise HTTPException(status_code=422, detail="date_to must not be before date_from")
        partner = self._partner(partner_id)

        opening = 0
        if include_opening:
            before = order_rows(self._ledger.orders_between(partner=partner, before=date_from))
            before += ledger_rows(self._ledger.entries_between(partner=partner, before=date_from))
            opening = closing_balance(0, before)

        rows = order_rows(self._ledger.orders_between(date_from, date_to, partner=partner))
        rows += ledger_rows(self._ledger.entries_between(date_from, date_to, partner=partner))
        return project_trades(opening, rows)
