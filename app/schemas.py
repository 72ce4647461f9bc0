from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from typing_extensions import Literal

MovementType = Literal["IN", "OUT", "DISCARD", "GIFT"]
IssueType = Literal["OUT", "GIFT"]
Direction = Literal["IN", "OUT"]
LedgerMethod = Literal["BANK", "CARD", "CASH", "ETC"]
VatType = Literal["TAXED", "EXEMPT", "ZERO", "NA"]
LeaveType = Literal["FULL", "AM", "PM"]
ShipMethod = Literal["PARCEL", "QUICK", "OTHER"]
MemoVisibility = Literal["PUBLIC", "ADMIN"]


class PartnerCreate(BaseModel):
    name: str
    business_no: Optional[str] = None
    is_pinned: bool = False


class PartnerRead(BaseModel):
    id: int
    name: str
    business_no: Optional[str]
    is_pinned: bool

    model_config = {"from_attributes": True}


class VariantCreate(BaseModel):
    barcode: str
    variant_name: str = ""
    pack_unit: int = 1

    @field_validator("pack_unit")
    @classmethod
    def pack_unit_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pack_unit must be at least 1")
        return v


class VariantRead(BaseModel):
    id: int
    product_id: int
    variant_name: str
    barcode: str
    pack_unit: int

    model_config = {"from_attributes": True}


class ProductCreate(BaseModel):
    name: str
    category: Optional[str] = None
    variants: list[VariantCreate] = Field(default_factory=list)


class ProductRead(BaseModel):
    id: int
    name: str
    category: Optional[str]
    variants: list[VariantRead]

    model_config = {"from_attributes": True}


class VariantInfo(BaseModel):
    variant_id: int
    product_name: str
    product_category: Optional[str]
    variant_name: str
    barcode: str
    pack_unit: int


class LotStock(BaseModel):
    lot_id: int
    variant_id: int
    product_name: str
    variant_name: str
    barcode: str
    expiry_date: date
    stock_qty: int


class VariantStock(BaseModel):
    variant_id: int
    product_name: str
    variant_name: str
    barcode: str
    stock_qty: int
    lot_count: int
    next_expiry: Optional[date] = None


class StockRecordCreate(BaseModel):
    barcode: str
    expiry_date: date
    qty: int
    note: Optional[str] = None

    @field_validator("qty")
    @classmethod
    def qty_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("qty must be at least 1")
        return v


class IssueCreate(BaseModel):
    barcode: str
    type: IssueType = "OUT"
    qty: int
    note: Optional[str] = None

    @field_validator("qty")
    @classmethod
    def qty_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("qty must be at least 1")
        return v


class Allocation(BaseModel):
    lot_id: int
    expiry_date: date
    qty: int
    type: IssueType


class MovementRead(BaseModel):
    id: int
    lot_id: int
    type: str
    qty: int
    note: Optional[str]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StockRecordResult(BaseModel):
    movement: MovementRead
    lot_stock_after: int


class IssueResult(BaseModel):
    barcode: str
    type: IssueType
    requested: int
    lots_touched: int
    path: Literal["atomic", "fallback"]
    allocations: list[Allocation] = Field(default_factory=list)


class BatchRow(BaseModel):
    type: MovementType
    barcode: str
    qty: int
    expiry_date: Optional[date] = None
    note: Optional[str] = None


class BatchCreate(BaseModel):
    rows: list[BatchRow]


class BatchResult(BaseModel):
    saved: int


class MovementHistoryRow(BaseModel):
    id: int
    created_at: Optional[datetime]
    type: str
    qty: int
    note: Optional[str]
    lot_id: int
    expiry_date: date
    barcode: str
    product_name: str
    variant_name: str


class OrderLineCreate(BaseModel):
    name: str
    qty: int = 0
    unit_price: int = 0
    total_incl_vat: int = 0


class ShipmentCreate(BaseModel):
    ship_to_name: Optional[str] = None
    ship_to_address1: Optional[str] = None
    ship_to_address2: Optional[str] = None
    ship_to_mobile: Optional[str] = None
    ship_to_phone: Optional[str] = None
    ship_zipcode: Optional[str] = None
    delivery_message: Optional[str] = None


class ShipmentRead(BaseModel):
    seq: int
    ship_to_name: Optional[str]
    ship_to_address1: Optional[str]
    ship_to_address2: Optional[str]
    ship_to_mobile: Optional[str]
    ship_to_phone: Optional[str]
    ship_zipcode: Optional[str]
    delivery_message: Optional[str]

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    partner_id: Optional[int] = None
    customer_name: Optional[str] = None
    ship_date: date
    ship_method: Optional[str] = None
    memo: Optional[str] = None
    lines: list[OrderLineCreate]
    shipments: list[ShipmentCreate] = Field(default_factory=list)


class OrderLineRead(BaseModel):
    line_no: int
    name: str
    qty: int
    unit_price: int
    supply_amount: int
    vat_amount: int
    total_amount: int

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    partner_id: Optional[int]
    customer_name: str
    ship_date: date
    ship_method: Optional[str]
    status: str
    memo: Optional[str]
    supply_amount: int
    vat_amount: int
    total_amount: int
    lines: list[OrderLineRead]
    shipments: list[ShipmentRead] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class LedgerEntryCreate(BaseModel):
    entry_date: date
    entry_ts: Optional[datetime] = None
    direction: Optional[Direction] = None
    amount: int
    category: Optional[str] = None
    method: LedgerMethod = "BANK"
    partner_id: Optional[int] = None
    counterparty_name: Optional[str] = None
    business_no: Optional[str] = None
    summary: Optional[str] = None
    memo: Optional[str] = None
    supply_amount: Optional[int] = None
    vat_amount: Optional[int] = None
    vat_type: Optional[VatType] = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("amount must be greater than 0")
        return v


class LedgerEntryRead(BaseModel):
    id: int
    entry_date: date
    entry_ts: Optional[datetime]
    direction: str
    amount: int
    category: str
    method: str
    partner_id: Optional[int]
    counterparty_name: Optional[str]
    business_no: Optional[str]
    summary: Optional[str]
    memo: Optional[str]
    status: str
    supply_amount: Optional[int]
    vat_amount: Optional[int]
    vat_type: Optional[str]

    model_config = {"from_attributes": True}


class LedgerList(BaseModel):
    entries: list[LedgerEntryRead]
    total_in: int
    total_out: int
    net: int


class TradeRow(BaseModel):
    kind: Literal["ORDER", "LEDGER"]
    source_id: int
    row_date: date
    ts_key: datetime
    partner_name: str = ""
    category: str = ""
    method: str = ""
    in_amount: int = 0
    out_amount: int = 0
    balance: int


class TradeProjection(BaseModel):
    opening_balance: int
    rows: list[TradeRow]
    total_in: int
    total_out: int
    final_balance: int


class TaxTotals(BaseModel):
    supply: int = 0
    vat: int = 0
    total: int = 0


class VendorPurchase(BaseModel):
    business_no: str
    name: str
    supply: int = 0
    vat: int = 0
    total: int = 0
    count: int = 0


class TaxSummary(BaseModel):
    date_from: date
    date_to: date
    sales: TaxTotals
    purchases: TaxTotals
    expected_vat_payable: int
    purchases_by_vendor: list[VendorPurchase]


class LeaveCreate(BaseModel):
    employee_name: str
    leave_date: date
    leave_type: LeaveType = "FULL"
    note: Optional[str] = None


class LeaveRead(BaseModel):
    id: int
    employee_name: str
    leave_date: date
    leave_type: str
    note: Optional[str]

    model_config = {"from_attributes": True}


class ShippingRow(BaseModel):
    order_id: int
    customer_name: str
    ship_method: ShipMethod
    seq: Optional[int] = None
    recipient_name: str
    address: str = ""
    zipcode: str = ""
    mobile: str = ""
    phone: str = ""
    delivery_message: str = ""
    products: str = ""


class ShippingList(BaseModel):
    ship_date: date
    rows: list[ShippingRow]
    by_method: dict[str, int]


class CalendarMemoUpsert(BaseModel):
    content: str


class CalendarMemoRead(BaseModel):
    id: int
    memo_date: date
    visibility: str
    content: str
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CalendarOrder(BaseModel):
    id: int
    customer_name: str
    ship_date: date
    ship_method: Optional[str]
    status: str
    total_amount: int

    model_config = {"from_attributes": True}


class CalendarMonth(BaseModel):
    month: str
    memos: list[CalendarMemoRead]
    orders: list[CalendarOrder]
