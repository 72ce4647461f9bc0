from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import session_dep
from app.schemas import TaxSummary
from app.services.tax_service import TaxService

router = APIRouter(tags=["tax"])


def tax_service_dep(db: Session = Depends(session_dep)) -> TaxService:
    return TaxService(db)


@router.get("/tax/summary", response_model=TaxSummary)
def tax_summary(
    date_from: date,
    date_to: date,
    category: Optional[list[str]] = Query(None),
    service: TaxService = Depends(tax_service_dep),
) -> TaxSummary:
    return service.summary(date_from, date_to, categories=category)
