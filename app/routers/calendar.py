from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.deps import session_dep
from app.schemas import CalendarMemoRead, CalendarMemoUpsert, CalendarMonth, MemoVisibility
from app.services.calendar_service import CalendarService

router = APIRouter(tags=["calendar"])


def calendar_service_dep(db: Session = Depends(session_dep)) -> CalendarService:
    return CalendarService(db)


@router.get("/calendar", response_model=CalendarMonth)
def calendar_month(
    month: str,
    include_admin: bool = False,
    service: CalendarService = Depends(calendar_service_dep),
) -> CalendarMonth:
    return service.month(month, include_admin=include_admin)


@router.put("/calendar/memos/{memo_date}/{visibility}", response_model=CalendarMemoRead)
def upsert_memo(
    memo_date: date,
    visibility: MemoVisibility,
    payload: CalendarMemoUpsert,
    service: CalendarService = Depends(calendar_service_dep),
) -> CalendarMemoRead:
    return CalendarMemoRead.model_validate(service.upsert_memo(memo_date, visibility, payload.content))


@router.delete("/calendar/memos/{memo_date}/{visibility}", status_code=204)
def delete_memo(
    memo_date: date,
    visibility: MemoVisibility,
    service: CalendarService = Depends(calendar_service_dep),
) -> Response:
    service.delete_memo(memo_date, visibility)
    return Response(status_code=204)
