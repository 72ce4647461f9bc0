from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Protocol

from app.schemas import TradeProjection, TradeRow

# Rows without a recorded time of day sort at noon.
DEFAULT_TIME_OF_DAY = time(12, 0)

_KIND_RANK = {"ORDER": 0, "LEDGER": 1}


class OrderSource(Protocol):
    id: int
    ship_date: date
    total_amount: int
    status: str
    customer_name: str
    ship_method: Optional[str]
    created_at: Optional[datetime]


class LedgerSource(Protocol):
    id: int
    entry_date: date
    entry_ts: Optional[datetime]
    direction: str
    amount: int
    status: str
    category: str
    method: str
    counterparty_name: Optional[str]
    created_at: Optional[datetime]


def _time_of_day(ts: Optional[datetime]) -> time:
    if ts is None:
        return DEFAULT_TIME_OF_DAY
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.time().replace(tzinfo=None)


def order_rows(orders: Iterable[OrderSource]) -> list[TradeRow]:
    rows: list[TradeRow] = []
    for o in orders:
        if (o.status or "").upper() == "CANCELLED":
            continue
        total = int(o.total_amount or 0)
        rows.append(
            TradeRow(
                kind="ORDER",
                source_id=o.id,
                row_date=o.ship_date,
                ts_key=datetime.combine(o.ship_date, _time_of_day(o.created_at)),
                partner_name=o.customer_name or "",
                category="Order",
                method=o.ship_method or "",
                in_amount=0,
                out_amount=total,
                balance=0,
            )
        )
    return rows


def ledger_rows(entries: Iterable[LedgerSource]) -> list[TradeRow]:
    rows: list[TradeRow] = []
    for e in entries:
        if (e.status or "").upper() == "VOID":
            continue
        amount = int(e.amount or 0)
        inflow = (e.direction or "").upper() != "OUT"
        rows.append(
            TradeRow(
                kind="LEDGER",
                source_id=e.id,
                row_date=e.entry_date,
                ts_key=datetime.combine(e.entry_date, _time_of_day(e.entry_ts or e.created_at)),
                partner_name=e.counterparty_name or "",
                category=e.category or "",
                method=e.method or "",
                in_amount=amount if inflow else 0,
                out_amount=0 if inflow else amount,
                balance=0,
            )
        )
    return rows


def chronological_key(row: TradeRow) -> tuple:
    # Inflows come before outflows at the same instant.
    return (
        row.ts_key,
        0 if row.in_amount > 0 else 1,
        _KIND_RANK.get(row.kind, 9),
        row.source_id,
    )


def annotate_balances(opening_balance: int, rows: Iterable[TradeRow]) -> list[TradeRow]:
    running = opening_balance
    annotated: list[TradeRow] = []
    for row in sorted(rows, key=chronological_key):
        running += row.in_amount - row.out_amount
        annotated.append(row.model_copy(update={"balance": running}))
    return annotated


def closing_balance(opening_balance: int, rows: Iterable[TradeRow]) -> int:
    annotated = annotate_balances(opening_balance, rows)
    return annotated[-1].balance if annotated else opening_balance


def sort_for_display(rows: Iterable[TradeRow]) -> list[TradeRow]:
    """Newest first. Balances already stamped on the rows are kept as-is."""
    return sorted(rows, key=chronological_key, reverse=True)


def project_trades(
    opening_balance: int,
    rows: Iterable[TradeRow],
    newest_first: bool = True,
) -> TradeProjection:
    annotated = annotate_balances(opening_balance, rows)
    final_balance = annotated[-1].balance if annotated else opening_balance
    return TradeProjection(
        opening_balance=opening_balance,
        rows=sort_for_display(annotated) if newest_first else annotated,
        total_in=sum(r.in_amount for r in annotated),
        total_out=sum(r.out_amount for r in annotated),
        final_balance=final_balance,
    )
