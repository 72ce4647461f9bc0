from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.business_config import BusinessConfig
from app.deps import config_dep, session_dep
from app.schemas import OrderCreate, OrderRead, ShippingList
from app.services.order_service import OrderService

router = APIRouter(tags=["orders"])


def order_service_dep(
    db: Session = Depends(session_dep),
    config: BusinessConfig = Depends(config_dep),
) -> OrderService:
    return OrderService(db, config)


@router.post("/orders", response_model=OrderRead)
def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(order_service_dep),
) -> OrderRead:
    return OrderRead.model_validate(service.create_order(payload))


@router.get("/orders", response_model=list[OrderRead])
def list_orders(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    partner_id: Optional[int] = None,
    include_cancelled: bool = True,
    service: OrderService = Depends(order_service_dep),
) -> list[OrderRead]:
    orders = service.list_orders(
        date_from=date_from,
        date_to=date_to,
        partner_id=partner_id,
        include_cancelled=include_cancelled,
    )
    return [OrderRead.model_validate(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    service: OrderService = Depends(order_service_dep),
) -> OrderRead:
    return OrderRead.model_validate(service.get_order(order_id))


@router.post("/orders/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    service: OrderService = Depends(order_service_dep),
) -> OrderRead:
    return OrderRead.model_validate(service.cancel_order(order_id))


@router.post("/orders/{order_id}/ship", response_model=OrderRead)
def ship_order(
    order_id: int,
    service: OrderService = Depends(order_service_dep),
) -> OrderRead:
    return OrderRead.model_validate(service.ship_order(order_id))


@router.get("/shipments", response_model=ShippingList)
def shipping_list(
    ship_date: date = Query(..., alias="date"),
    service: OrderService = Depends(order_service_dep),
) -> ShippingList:
    return service.shipping_list(ship_date)
