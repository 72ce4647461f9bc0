from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import case, func, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import is_postgresql
from app.errors import (
    AllocationConsistencyError,
    AtomicIssueUnavailable,
    InsufficientStock,
    ItemNotRegistered,
    StockWriteError,
)
from app.models import InventoryLot, InventoryMovement, Product, ProductVariant
from app.procedures import FEFO_ISSUE_FUNCTION
from app.schemas import LotStock, MovementHistoryRow, VariantStock

logger = logging.getLogger(__name__)

_UNDEFINED_FUNCTION = "42883"


def signed_qty():
    return case((InventoryMovement.type == "IN", InventoryMovement.qty), else_=-InventoryMovement.qty)


def lot_select(variant_id: int, expiry_date: date, for_update: bool = False):
    stmt = select(InventoryLot).where(
        InventoryLot.variant_id == variant_id,
        InventoryLot.expiry_date == expiry_date,
    )
    # Row lock shared with fefo_issue_by_barcode; ignored by SQLite.
    return stmt.with_for_update() if for_update else stmt


def _pg_error(e: DBAPIError) -> tuple[Optional[str], str, str]:
    orig: Any = e.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    diag = getattr(orig, "diag", None)
    message = (getattr(diag, "message_primary", None) or str(orig) or "").strip()
    detail = (getattr(diag, "message_detail", None) or "").strip()
    return code, message, detail


class InventoryRepository:
    def __init__(self, db: Session):
        self._db = db

    def add_movement(self, movement: InventoryMovement) -> None:
        self._db.add(movement)

    def get_lot(self, variant_id: int, expiry_date: date, for_update: bool = False) -> Optional[InventoryLot]:
        return self._db.scalar(lot_select(variant_id, expiry_date, for_update=for_update))

    def upsert_lot(self, variant_id: int, expiry_date: date) -> InventoryLot:
        lot = self.get_lot(variant_id, expiry_date)
        if lot is not None:
            return lot
        lot = InventoryLot(variant_id=variant_id, expiry_date=expiry_date)
        self._db.add(lot)
        try:
            self._db.flush()
        except IntegrityError as e:
            # Another writer created the same (variant, expiry) lot first.
            self._db.rollback()
            lot = self.get_lot(variant_id, expiry_date)
            if lot is None:
                logger.exception("lot insert for variant %s expiry %s failed", variant_id, expiry_date)
                raise StockWriteError() from e
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.exception("lot insert for variant %s expiry %s failed", variant_id, expiry_date)
            raise StockWriteError() from e
        return lot

    def lot_stock(self, lot_id: int) -> int:
        total = self._db.scalar(
            select(func.coalesce(func.sum(signed_qty()), 0)).where(InventoryMovement.lot_id == lot_id)
        )
        return int(total or 0)

    def lots_by_barcode(self, barcode: str) -> list[LotStock]:
        """Lots of one variant that still hold stock, soonest expiry first."""
        stock = func.coalesce(func.sum(signed_qty()), 0)
        stmt = (
            select(
                InventoryLot.id,
                ProductVariant.id,
                Product.name,
                ProductVariant.variant_name,
                ProductVariant.barcode,
                InventoryLot.expiry_date,
                stock.label("stock_qty"),
            )
            .select_from(InventoryLot)
            .join(ProductVariant, ProductVariant.id == InventoryLot.variant_id)
            .join(Product, Product.id == ProductVariant.product_id)
            .outerjoin(InventoryMovement, InventoryMovement.lot_id == InventoryLot.id)
            .where(ProductVariant.barcode == barcode)
            .group_by(InventoryLot.id, ProductVariant.id, Product.id)
            .having(stock > 0)
            .order_by(InventoryLot.expiry_date, InventoryLot.id)
        )
        return [
            LotStock(
                lot_id=lot_id,
                variant_id=variant_id,
                product_name=product_name or "",
                variant_name=variant_name or "",
                barcode=code,
                expiry_date=expiry_date,
                stock_qty=int(qty or 0),
            )
            for lot_id, variant_id, product_name, variant_name, code, expiry_date, qty in self._db.execute(stmt).all()
        ]

    def variant_has_movements(self, variant_id: int) -> bool:
        found = self._db.scalar(
            select(InventoryMovement.id)
            .join(InventoryLot, InventoryLot.id == InventoryMovement.lot_id)
            .where(InventoryLot.variant_id == variant_id)
            .limit(1)
        )
        return found is not None

    def delete_lots_for_variant(self, variant_id: int) -> None:
        for lot in self._db.scalars(select(InventoryLot).where(InventoryLot.variant_id == variant_id)):
            self._db.delete(lot)

    def issue_fefo_atomic(self, barcode: str, issue_type: str, qty: int, note: Optional[str]) -> int:
        """Run the server-side FEFO issuance in one transaction; returns lots touched."""
        if not is_postgresql(self._db):
            raise AtomicIssueUnavailable(f"{self._db.get_bind().dialect.name} has no {FEFO_ISSUE_FUNCTION}")

        try:
            touched = self._db.scalar(
                text(f"SELECT {FEFO_ISSUE_FUNCTION}(:barcode, :type, :qty, :note)"),
                {"barcode": barcode, "type": issue_type, "qty": qty, "note": note},
            )
            self._db.commit()
        except DBAPIError as e:
            self._db.rollback()
            code, message, detail = _pg_error(e)
            if code == _UNDEFINED_FUNCTION:
                raise AtomicIssueUnavailable(message) from e
            if message == "item_not_registered":
                raise ItemNotRegistered(barcode) from e
            if message == "insufficient_stock":
                raise InsufficientStock(requested=qty, available=int(detail or 0), barcode=barcode) from e
            if message == "fefo_remainder":
                raise AllocationConsistencyError(barcode=barcode, requested=qty, remaining=int(detail or 0)) from e
            logger.exception("atomic issuance failed for %s", barcode)
            raise StockWriteError() from e
        return int(touched or 0)

    def stock_list(self, query: str = "") -> list[VariantStock]:
        q = query.strip()
        lot_stock = (
            select(
                InventoryLot.id.label("lot_id"),
                InventoryLot.variant_id.label("variant_id"),
                InventoryLot.expiry_date.label("expiry_date"),
                func.coalesce(func.sum(signed_qty()), 0).label("stock_qty"),
            )
            .select_from(InventoryLot)
            .outerjoin(InventoryMovement, InventoryMovement.lot_id == InventoryLot.id)
            .group_by(InventoryLot.id)
            .subquery()
        )
        positive = lot_stock.c.stock_qty > 0
        stmt = (
            select(
                ProductVariant.id,
                Product.name,
                ProductVariant.variant_name,
                ProductVariant.barcode,
                func.coalesce(func.sum(case((positive, lot_stock.c.stock_qty), else_=0)), 0),
                func.count(case((positive, lot_stock.c.lot_id))),
                func.min(case((positive, lot_stock.c.expiry_date))),
            )
            .select_from(ProductVariant)
            .join(Product, Product.id == ProductVariant.product_id)
            .outerjoin(lot_stock, lot_stock.c.variant_id == ProductVariant.id)
        )
        if q:
            like = f"%{q}%"
            stmt = stmt.where((Product.name.like(like)) | (ProductVariant.barcode.like(like)))

        rows = self._db.execute(
            stmt.group_by(ProductVariant.id, Product.id).order_by(Product.name, ProductVariant.id)
        ).all()
        return [
            VariantStock(
                variant_id=variant_id,
                product_name=product_name or "",
                variant_name=variant_name or "",
                barcode=barcode,
                stock_qty=int(qty or 0),
                lot_count=int(lot_count or 0),
                next_expiry=next_expiry,
            )
            for variant_id, product_name, variant_name, barcode, qty, lot_count, next_expiry in rows
        ]

    def movement_history(
        self,
        barcode: Optional[str] = None,
        movement_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[MovementHistoryRow]:
        stmt = (
            select(
                InventoryMovement.id,
                InventoryMovement.created_at,
                InventoryMovement.type,
                InventoryMovement.qty,
                InventoryMovement.note,
                InventoryLot.id,
                InventoryLot.expiry_date,
                ProductVariant.barcode,
                Product.name,
                ProductVariant.variant_name,
            )
            .select_from(InventoryMovement)
            .join(InventoryLot, InventoryLot.id == InventoryMovement.lot_id)
            .join(ProductVariant, ProductVariant.id == InventoryLot.variant_id)
            .join(Product, Product.id == ProductVariant.product_id)
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
        )

        if barcode:
            stmt = stmt.where(ProductVariant.barcode == barcode)

        if movement_type:
            stmt = stmt.where(InventoryMovement.type == movement_type)

        if start_date:
            stmt = stmt.where(InventoryMovement.created_at >= start_date)

        if end_date:
            stmt = stmt.where(InventoryMovement.created_at < end_date)

        rows = self._db.execute(stmt.limit(limit)).all()
        return [
            MovementHistoryRow(
                id=mid,
                created_at=created_at,
                type=mtype,
                qty=int(qty),
                note=note,
                lot_id=lot_id,
                expiry_date=expiry_date,
                barcode=code,
                product_name=product_name or "",
                variant_name=variant_name or "",
            )
            for mid, created_at, mtype, qty, note, lot_id, expiry_date, code, product_name, variant_name in rows
        ]
