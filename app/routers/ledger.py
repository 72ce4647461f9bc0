from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.business_config import BusinessConfig
from app.deps import config_dep, session_dep
from app.schemas import (
    Direction,
    LedgerEntryCreate,
    LedgerEntryRead,
    LedgerList,
    LedgerMethod,
    TradeProjection,
)
from app.services.ledger_service import LedgerService

router = APIRouter(tags=["ledger"])


def ledger_service_dep(
    db: Session = Depends(session_dep),
    config: BusinessConfig = Depends(config_dep),
) -> LedgerService:
    return LedgerService(db, config)


@router.post("/ledger", response_model=LedgerEntryRead)
def create_entry(
    payload: LedgerEntryCreate,
    service: LedgerService = Depends(ledger_service_dep),
) -> LedgerEntryRead:
    return LedgerEntryRead.model_validate(service.create_entry(payload))


@router.get("/ledger", response_model=LedgerList)
def list_entries(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    direction: Optional[Direction] = None,
    method: Optional[LedgerMethod] = None,
    category: Optional[str] = None,
    q: str = "",
    partner_id: Optional[int] = None,
    include_void: bool = True,
    limit: int = Query(50, ge=1, le=500),
    service: LedgerService = Depends(ledger_service_dep),
) -> LedgerList:
    return service.list_entries(
        date_from=date_from,
        date_to=date_to,
        direction=direction,
        method=method,
        category=category,
        query=q,
        partner_id=partner_id,
        include_void=include_void,
        limit=limit,
    )


@router.post("/ledger/{entry_id}/void", response_model=LedgerEntryRead)
def void_entry(
    entry_id: int,
    service: LedgerService = Depends(ledger_service_dep),
) -> LedgerEntryRead:
    return LedgerEntryRead.model_validate(service.void_entry(entry_id))


@router.get("/ledger/book", response_model=TradeProjection)
def ledger_book(
    date_from: date,
    date_to: date,
    partner_id: Optional[int] = None,
    service: LedgerService = Depends(ledger_service_dep),
) -> TradeProjection:
    return service.ledger_book(date_from, date_to, partner_id=partner_id)


@router.get("/trades", response_model=TradeProjection)
def trade_view(
    date_from: date,
    date_to: date,
    partner_id: Optional[int] = None,
    include_opening: bool = True,
    service: LedgerService = Depends(ledger_service_dep),
) -> TradeProjection:
    return service.trade_view(
        date_from,
        date_to,
        partner_id=partner_id,
        include_opening=include_opening,
    )
