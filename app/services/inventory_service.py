from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.business_config import BusinessConfig, load_business_config
from app.errors import AtomicIssueUnavailable, InsufficientStock, ItemNotRegistered, StockWriteError
from app.models import InventoryMovement, ProductVariant
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.inventory_repository import InventoryRepository
from app.schemas import (
    BatchCreate,
    BatchResult,
    IssueCreate,
    IssueResult,
    LotStock,
    MovementHistoryRow,
    MovementRead,
    StockRecordCreate,
    StockRecordResult,
    VariantStock,
)
from app.services.allocation import plan_fefo_issue
from app.utils import normalize_barcode

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(self, db: Session, config: Optional[BusinessConfig] = None):
        self._db = db
        self._config = config or load_business_config()
        self._catalog = CatalogRepository(db)
        self._inventory = InventoryRepository(db)

    def _get_variant(self, barcode: str) -> tuple[str, ProductVariant]:
        code = normalize_barcode(barcode)
        variant = self._catalog.get_variant_by_barcode(code) if code else None
        if variant is None:
            raise ItemNotRegistered(code or barcode)
        return code, variant

    def _commit(self) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.exception("movement commit failed")
            raise StockWriteError() from e

    def record_inbound(self, payload: StockRecordCreate) -> StockRecordResult:
        _, variant = self._get_variant(payload.barcode)

        lot = self._inventory.upsert_lot(variant.id, payload.expiry_date)
        movement = InventoryMovement(lot_id=lot.id, type="IN", qty=payload.qty, note=payload.note)
        self._inventory.add_movement(movement)
        self._commit()
        self._db.refresh(movement)

        return StockRecordResult(
            movement=MovementRead.model_validate(movement),
            lot_stock_after=self._inventory.lot_stock(lot.id),
        )

    def record_discard(self, payload: StockRecordCreate) -> StockRecordResult:
        code, variant = self._get_variant(payload.barcode)

        # Locking the lot serializes this check with a concurrent atomic issue.
        lot = self._inventory.get_lot(variant.id, payload.expiry_date, for_update=True)
        available = self._inventory.lot_stock(lot.id) if lot is not None else 0
        if lot is None or available < payload.qty:
            self._db.rollback()
            raise InsufficientStock(requested=payload.qty, available=available, barcode=code)

        movement = InventoryMovement(lot_id=lot.id, type="DISCARD", qty=payload.qty, note=payload.note)
        self._inventory.add_movement(movement)
        self._commit()
        self._db.refresh(movement)

        return StockRecordResult(
            movement=MovementRead.model_validate(movement),
            lot_stock_after=self._inventory.lot_stock(lot.id),
        )

    def issue(self, payload: IssueCreate) -> IssueResult:
        """Issue OUT/GIFT stock soonest-expiry first.

        The server-side procedure is tried first; it locks the variant's lots
        and commits every movement or none. Without it the split is computed
        here and written in one commit. That fallback reads stock and writes
        movements without a lock, so two operators issuing the same item at
        once can over-draw a lot.
        """
        code, _variant = self._get_variant(payload.barcode)
        note = (payload.note or "").strip() or None

        if self._config.stock.atomic_issue == "auto":
            try:
                touched = self._inventory.issue_fefo_atomic(code, payload.type, payload.qty, note)
            except AtomicIssueUnavailable as e:
                logger.warning("atomic issuance unavailable (%s); using client-side FEFO split", e)
            else:
                logger.info("issued %s %s x%d atomically across %d lot(s)", payload.type, code, payload.qty, touched)
                return IssueResult(
                    barcode=code,
                    type=payload.type,
                    requested=payload.qty,
                    lots_touched=touched,
                    path="atomic",
                )

        lots = self._inventory.lots_by_barcode(code)
        allocations = plan_fefo_issue(lots, payload.qty, payload.type, barcode=code)
        for alloc in allocations:
            self._inventory.add_movement(
                InventoryMovement(lot_id=alloc.lot_id, type=alloc.type, qty=alloc.qty, note=note)
            )
        self._commit()

        logger.info("issued %s %s x%d across %d lot(s) via fallback", payload.type, code, payload.qty, len(allocations))
        return IssueResult(
            barcode=code,
            type=payload.type,
            requested=payload.qty,
            lots_touched=len(allocations),
            path="fallback",
            allocations=allocations,
        )

    def commit_batch(self, payload: BatchCreate) -> BatchResult:
        if not payload.rows:
            raise HTTPException(status_code=422, detail="no rows to save")

        for row in payload.rows:
            if row.qty < 1:
                raise HTTPException(status_code=422, detail=f"qty must be at least 1: {row.barcode}")
            if row.type in ("IN", "DISCARD") and row.expiry_date is None:
                raise HTTPException(status_code=422, detail=f"expiry_date is required for {row.type}: {row.barcode}")

        saved = 0
        for row in payload.rows:
            try:
                if row.type in ("OUT", "GIFT"):
                    self.issue(IssueCreate(barcode=row.barcode, type=row.type, qty=row.qty, note=row.note))
                else:
                    record = StockRecordCreate(
                        barcode=row.barcode, expiry_date=row.expiry_date, qty=row.qty, note=row.note
                    )
                    if row.type == "IN":
                        self.record_inbound(record)
                    else:
                        self.record_discard(record)
            except HTTPException as e:
                raise HTTPException(
                    status_code=e.status_code,
                    detail=f"{e.detail} (saved {saved} of {len(payload.rows)} rows)",
                ) from e
            saved += 1
        return BatchResult(saved=saved)

    def lots(self, barcode: str) -> list[LotStock]:
        code, _ = self._get_variant(barcode)
        return self._inventory.lots_by_barcode(code)

    def stock_list(self, query: str = "") -> list[VariantStock]:
        return self._inventory.stock_list(query=query)

    def movement_history(
        self,
        barcode: Optional[str] = None,
        movement_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[MovementHistoryRow]:
        return self._inventory.movement_history(
            barcode=normalize_barcode(barcode) if barcode else None,
            movement_type=movement_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
