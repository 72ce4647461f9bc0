from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.business_config import BusinessConfig
from app.deps import config_dep, session_dep
from app.schemas import (
    BatchCreate,
    BatchResult,
    IssueCreate,
    IssueResult,
    LotStock,
    MovementHistoryRow,
    MovementType,
    StockRecordCreate,
    StockRecordResult,
    VariantStock,
)
from app.services.inventory_service import InventoryService

router = APIRouter(tags=["inventory"])


def inventory_service_dep(
    db: Session = Depends(session_dep),
    config: BusinessConfig = Depends(config_dep),
) -> InventoryService:
    return InventoryService(db, config)


@router.post("/movements/inbound", response_model=StockRecordResult)
def record_inbound(
    payload: StockRecordCreate,
    service: InventoryService = Depends(inventory_service_dep),
) -> StockRecordResult:
    return service.record_inbound(payload)


@router.post("/movements/discard", response_model=StockRecordResult)
def record_discard(
    payload: StockRecordCreate,
    service: InventoryService = Depends(inventory_service_dep),
) -> StockRecordResult:
    return service.record_discard(payload)


@router.post("/movements/issue", response_model=IssueResult)
def issue_stock(
    payload: IssueCreate,
    service: InventoryService = Depends(inventory_service_dep),
) -> IssueResult:
    return service.issue(payload)


@router.post("/movements/batch", response_model=BatchResult)
def commit_batch(
    payload: BatchCreate,
    service: InventoryService = Depends(inventory_service_dep),
) -> BatchResult:
    return service.commit_batch(payload)


@router.get("/movements", response_model=list[MovementHistoryRow])
def movement_history(
    barcode: Optional[str] = None,
    type: Optional[MovementType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    service: InventoryService = Depends(inventory_service_dep),
) -> list[MovementHistoryRow]:
    return service.movement_history(
        barcode=barcode,
        movement_type=type,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )


@router.get("/stock", response_model=list[VariantStock])
def stock_list(
    q: str = "",
    service: InventoryService = Depends(inventory_service_dep),
) -> list[VariantStock]:
    return service.stock_list(query=q)


@router.get("/stock/{barcode}/lots", response_model=list[LotStock])
def lot_stock(
    barcode: str,
    service: InventoryService = Depends(inventory_service_dep),
) -> list[LotStock]:
    return service.lots(barcode)
