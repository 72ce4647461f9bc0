from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class Partner(Base):
    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    business_no: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    variants: Mapped[list["ProductVariant"]] = relationship(
        back_populates="product", order_by="ProductVariant.id"
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    variant_name: Mapped[str] = mapped_column(String(255), default="", server_default="")
    barcode: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    pack_unit: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    product: Mapped[Product] = relationship(back_populates="variants")


class InventoryLot(Base):
    __tablename__ = "inventory_lots"
    __table_args__ = (UniqueConstraint("variant_id", "expiry_date", name="ux_inventory_lots_variant_expiry"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    variant_id: Mapped[int] = mapped_column(ForeignKey("product_variants.id"), index=True)
    expiry_date: Mapped[date] = mapped_column(Date, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id: Mapped[int] = mapped_column(primary_key=True)
    lot_id: Mapped[int] = mapped_column(ForeignKey("inventory_lots.id"), index=True)
    type: Mapped[str] = mapped_column(String(16), index=True)
    qty: Mapped[int] = mapped_column(Integer)
    note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    partner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("partners.id"), nullable=True, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), index=True)
    ship_date: Mapped[date] = mapped_column(Date, index=True)
    ship_method: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="ORDERED", server_default="ORDERED", index=True)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    supply_amount: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    vat_amount: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    total_amount: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order", order_by="OrderLine.line_no", cascade="all, delete-orphan"
    )
    shipments: Mapped[list["OrderShipment"]] = relationship(
        back_populates="order", order_by="OrderShipment.seq", cascade="all, delete-orphan"
    )


class OrderLine(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    line_no: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(255))
    qty: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    supply_amount: Mapped[int] = mapped_column(BigInteger)
    vat_amount: Mapped[int] = mapped_column(BigInteger)
    total_amount: Mapped[int] = mapped_column(BigInteger)

    order: Mapped[Order] = relationship(back_populates="lines")


class OrderShipment(Base):
    __tablename__ = "order_shipments"
    __table_args__ = (UniqueConstraint("order_id", "seq", name="ux_order_shipments_order_seq"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    seq: Mapped[int] = mapped_column(Integer)
    ship_to_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ship_to_address1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ship_to_address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ship_to_mobile: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    ship_to_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    ship_zipcode: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    delivery_message: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    order: Mapped[Order] = relationship(back_populates="shipments")


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_date: Mapped[date] = mapped_column(Date, index=True)
    entry_ts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    direction: Mapped[str] = mapped_column(String(8), index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    category: Mapped[str] = mapped_column(String(64), index=True)
    method: Mapped[str] = mapped_column(String(8), default="BANK", server_default="BANK")
    partner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("partners.id"), nullable=True, index=True)
    counterparty_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    business_no: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    summary: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(8), default="POSTED", server_default="POSTED", index=True)
    supply_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    vat_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    vat_type: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (UniqueConstraint("employee_name", "leave_date", name="ux_leave_requests_employee_date"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_name: Mapped[str] = mapped_column(String(64), index=True)
    leave_date: Mapped[date] = mapped_column(Date, index=True)
    leave_type: Mapped[str] = mapped_column(String(8), default="FULL", server_default="FULL")
    note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class CalendarMemo(Base):
    __tablename__ = "calendar_memos"
    __table_args__ = (UniqueConstraint("memo_date", "visibility", name="ux_calendar_memos_date_visibility"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    memo_date: Mapped[date] = mapped_column(Date, index=True)
    visibility: Mapped[str] = mapped_column(String(8), default="PUBLIC", server_default="PUBLIC")
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
