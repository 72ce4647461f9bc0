from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import LedgerEntry, Order
from app.schemas import TaxSummary, TaxTotals, VendorPurchase

NO_BUSINESS_NO = "(none)"


class TaxService:
    def __init__(self, db: Session):
        self._db = db

    def _sales(self, date_from: date, date_to: date) -> TaxTotals:
        orders = self._db.scalars(
            select(Order).where(
                Order.ship_date >= date_from,
                Order.ship_date <= date_to,
                Order.status != "CANCELLED",
            )
        )
        totals = TaxTotals()
        for o in orders:
            totals.supply += int(o.supply_amount or 0)
            totals.vat += int(o.vat_amount or 0)
            totals.total += int(o.total_amount or 0)
        return totals

    def _purchases(
        self,
        date_from: date,
        date_to: date,
        categories: Optional[Iterable[str]] = None,
    ) -> list[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(
                LedgerEntry.entry_date >= date_from,
                LedgerEntry.entry_date <= date_to,
                LedgerEntry.direction == "OUT",
                LedgerEntry.status == "POSTED",
            )
            .order_by(LedgerEntry.entry_date, LedgerEntry.id)
        )
        wanted = [c.strip() for c in (categories or []) if c and c.strip()]
        if wanted:
            stmt = stmt.where(LedgerEntry.category.in_(wanted))
        return list(self._db.scalars(stmt))

    def summary(
        self,
        date_from: date,
        date_to: date,
        categories: Optional[Iterable[str]] = None,
    ) -> TaxSummary:
        if date_to < date_from:
            raise HTTPException(status_code=422, detail="date_to must not be before date_from")

        sales = self._sales(date_from, date_to)
        purchases = TaxTotals()
        vendors: Dict[str, VendorPurchase] = {}

        for e in self._purchases(date_from, date_to, categories):
            total = int(e.amount or 0)
            supply = vat = 0
            # Legacy rows carry only the gross amount.
            if e.supply_amount is not None and e.vat_amount is not None:
                supply = int(e.supply_amount)
                if (e.vat_type or "TAXED") == "TAXED":
                    vat = int(e.vat_amount)

            purchases.supply += supply
            purchases.vat += vat
            purchases.total += total

            key = (e.business_no or "").strip() or NO_BUSINESS_NO
            vendor = vendors.get(key)
            if vendor is None:
                vendor = VendorPurchase(business_no=key, name=e.counterparty_name or "")
                vendors[key] = vendor
            elif not vendor.name and e.counterparty_name:
                vendor.name = e.counterparty_name
            vendor.supply += supply
            vendor.vat += vat
            vendor.total += total
            vendor.count += 1

        return TaxSummary(
            date_from=date_from,
            date_to=date_to,
            sales=sales,
            purchases=purchases,
            expected_vat_payable=sales.vat - purchases.vat,
            purchases_by_vendor=[vendors[k] for k in sorted(vendors)],
        )
