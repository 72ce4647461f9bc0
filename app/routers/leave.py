from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.deps import session_dep
from app.schemas import LeaveCreate, LeaveRead
from app.services.leave_service import LeaveService

router = APIRouter(tags=["leave"])


def leave_service_dep(db: Session = Depends(session_dep)) -> LeaveService:
    return LeaveService(db)


@router.post("/leave", response_model=LeaveRead)
def create_leave(
    payload: LeaveCreate,
    service: LeaveService = Depends(leave_service_dep),
) -> LeaveRead:
    return LeaveRead.model_validate(service.create(payload))


@router.get("/leave", response_model=list[LeaveRead])
def list_leave(
    month: str,
    service: LeaveService = Depends(leave_service_dep),
) -> list[LeaveRead]:
    return [LeaveRead.model_validate(r) for r in service.list_month(month)]


@router.delete("/leave/{leave_id}", status_code=204)
def delete_leave(
    leave_id: int,
    service: LeaveService = Depends(leave_service_dep),
) -> Response:
    service.delete(leave_id)
    return Response(status_code=204)
