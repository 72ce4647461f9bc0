from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import LeaveRequest
from app.schemas import LeaveCreate
from app.utils import month_bounds


class LeaveService:
    def __init__(self, db: Session):
        self._db = db

    def create(self, payload: LeaveCreate) -> LeaveRequest:
        name = payload.employee_name.strip()
        if not name:
            raise HTTPException(status_code=422, detail="employee_name must not be empty")

        leave = LeaveRequest(
            employee_name=name,
            leave_date=payload.leave_date,
            leave_type=payload.leave_type,
            note=(payload.note or "").strip() or None,
        )
        self._db.add(leave)
        try:
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise HTTPException(
                status_code=409, detail=f"{name} already has leave on {payload.leave_date.isoformat()}"
            ) from e
        self._db.refresh(leave)
        return leave

    def list_month(self, month: str) -> list[LeaveRequest]:
        start, end = month_bounds(month)
        return list(
            self._db.scalars(
                select(LeaveRequest)
                .where(LeaveRequest.leave_date >= start, LeaveRequest.leave_date < end)
                .order_by(LeaveRequest.leave_date, LeaveRequest.created_at, LeaveRequest.id)
            )
        )

    def delete(self, leave_id: int) -> None:
        leave = self._db.get(LeaveRequest, leave_id)
        if leave is None:
            raise HTTPException(status_code=404, detail="Leave request not found")
        self._db.delete(leave)
        self._db.commit()
