from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.business_config import BusinessConfig, load_business_config
from app.models import Order, OrderLine, OrderShipment, Partner
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.ledger_repository import LedgerRepository
from app.schemas import OrderCreate, OrderLineCreate, ShipmentCreate, ShippingList, ShippingRow
from app.utils import round_half_up

logger = logging.getLogger(__name__)


def line_amounts(line: OrderLineCreate, vat_rate: float) -> Tuple[int, int, int]:
    """Return (supply, vat, total) for one order line.

    A positive `total_incl_vat` wins over `qty * unit_price`; the supply
    is then backed out of the VAT-inclusive total.
    """
    rate = Decimal(str(vat_rate))
    if line.total_incl_vat:
        total = int(line.total_incl_vat)
        supply = round_half_up(Decimal(total) / (Decimal(1) + rate))
        return supply, total - supply, total

    if line.qty <= 0:
        return 0, 0, 0
    supply = int(line.qty) * int(line.unit_price)
    vat = round_half_up(Decimal(supply) * rate)
    return supply, vat, supply + vat


def normalize_ship_method(raw: Optional[str]) -> str:
    """Map free-text shipping methods onto PARCEL, QUICK or OTHER."""
    s = (raw or "").strip().lower()
    if not s:
        return "OTHER"
    if "택배" in s or "parcel" in s or "courier" in s:
        return "PARCEL"
    if "퀵" in s or "quick" in s:
        return "QUICK"
    return "OTHER"


def products_text(lines: list[OrderLine]) -> str:
    """One `name xqty` per line, in line order."""
    parts = []
    for line in sorted(lines, key=lambda line: line.line_no or 0):
        name = (line.name or "").strip()
        if not name:
            continue
        parts.append(f"{name} x{line.qty}" if line.qty and line.qty > 0 else name)
    return "\n".join(parts)


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def _new_shipments(payload: list[ShipmentCreate]) -> list[OrderShipment]:
    shipments: list[OrderShipment] = []
    for s in payload:
        fields = {
            "ship_to_name": _clean(s.ship_to_name),
            "ship_to_address1": _clean(s.ship_to_address1),
            "ship_to_address2": _clean(s.ship_to_address2),
            "ship_to_mobile": _clean(s.ship_to_mobile),
            "ship_to_phone": _clean(s.ship_to_phone),
            "ship_zipcode": _clean(s.ship_zipcode),
            "delivery_message": _clean(s.delivery_message),
        }
        # Blank recipient blocks are form noise.
        if not any(fields.values()):
            continue
        shipments.append(OrderShipment(seq=len(shipments) + 1, **fields))
    return shipments


class OrderService:
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

    def create_order(self, payload: OrderCreate) -> Order:
        partner = self._partner(payload.partner_id)
        customer_name = (payload.customer_name or "").strip() or (partner.name if partner else "")
        if not customer_name:
            raise HTTPException(status_code=422, detail="customer_name or partner_id is required")

        rate = self._config.tax.vat_rate
        lines: list[OrderLine] = []
        for line in payload.lines:
            name = (line.name or "").strip()
            if not name or line.qty <= 0:
                continue
            supply, vat, total = line_amounts(line, rate)
            if total == 0:
                continue
            lines.append(
                OrderLine(
                    line_no=len(lines) + 1,
                    name=name,
                    qty=line.qty,
                    unit_price=line.unit_price,
                    supply_amount=supply,
                    vat_amount=vat,
                    total_amount=total,
                )
            )
        if not lines:
            raise HTTPException(status_code=422, detail="order needs at least one line")

        order = Order(
            partner_id=partner.id if partner else None,
            customer_name=customer_name,
            ship_date=payload.ship_date,
            ship_method=(payload.ship_method or "").strip() or None,
            memo=(payload.memo or "").strip() or None,
            supply_amount=sum(line.supply_amount for line in lines),
            vat_amount=sum(line.vat_amount for line in lines),
            total_amount=sum(line.total_amount for line in lines),
            lines=lines,
            shipments=_new_shipments(payload.shipments),
        )
        self._ledger.add(order)
        self._db.commit()
        self._db.refresh(order)
        logger.info("order %s created for %s, total %s", order.id, customer_name, order.total_amount)
        return order

    def get_order(self, order_id: int) -> Order:
        order = self._ledger.get_order(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def list_orders(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        partner_id: Optional[int] = None,
        include_cancelled: bool = True,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.shipments))
            .order_by(Order.ship_date.desc(), Order.id.desc())
        )
        if date_from is not None:
            stmt = stmt.where(Order.ship_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Order.ship_date <= date_to)
        if partner_id is not None:
            stmt = stmt.where(Order.partner_id == partner_id)
        if not include_cancelled:
            stmt = stmt.where(Order.status != "CANCELLED")
        return list(self._db.scalars(stmt))

    def _transition(self, order_id: int, status: str) -> Order:
        order = self.get_order(order_id)
        if order.status != "ORDERED":
            raise HTTPException(
                status_code=409,
                detail=f"Order is {order.status.lower()} and cannot become {status.lower()}",
            )
        order.status = status
        self._db.commit()
        self._db.refresh(order)
        logger.info("order %s %s", order_id, status.lower())
        return order

    def cancel_order(self, order_id: int) -> Order:
        return self._transition(order_id, "CANCELLED")

    def ship_order(self, order_id: int) -> Order:
        return self._transition(order_id, "SHIPPED")

    def shipping_list(self, ship_date: date) -> ShippingList:
        """One row per recipient of every live order shipping on `ship_date`.

        Orders without recipient rows still get one row addressed to the
        customer.
        """
        hidden = set(self._config.shipping.hidden_customers)
        orders = self._db.scalars(
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.shipments))
            .where(Order.ship_date == ship_date, Order.status != "CANCELLED")
            .order_by(Order.created_at, Order.id)
        )

        rows: list[ShippingRow] = []
        by_method = {"PARCEL": 0, "QUICK": 0, "OTHER": 0}
        for order in orders:
            customer = (order.customer_name or "").strip()
            if customer in hidden:
                continue
            method = normalize_ship_method(order.ship_method)
            products = products_text(order.lines)
            by_method[method] += 1

            for s in order.shipments or [None]:
                address = " ".join(p for p in ((s.ship_to_address1, s.ship_to_address2) if s else ()) if p)
                rows.append(
                    ShippingRow(
                        order_id=order.id,
                        customer_name=customer,
                        ship_method=method,
                        seq=s.seq if s else None,
                        recipient_name=(s.ship_to_name if s else None) or customer,
                        address=address,
                        zipcode=(s.ship_zipcode if s else None) or "",
                        mobile=(s.ship_to_mobile if s else None) or "",
                        phone=(s.ship_to_phone if s else None) or "",
                        delivery_message=(s.delivery_message if s else None) or "",
                        products=products,
                    )
                )
        return ShippingList(ship_date=ship_date, rows=rows, by_method=by_method)
