from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import TextClause

from app.models import InventoryMovement
from app.procedures import FEFO_ISSUE_FUNCTION
from app.repositories import inventory_repository


class PgDiag:
    def __init__(self, message_primary: str, message_detail: str = ""):
        self.message_primary = message_primary
        self.message_detail = message_detail


class PgError(Exception):
    """Shaped like a psycopg2 error: `pgcode` plus a `diag` block."""

    def __init__(self, pgcode: str, message: str, detail: str = ""):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = PgDiag(message, detail)


class Psycopg3Error(Exception):
    """psycopg 3 names the code `sqlstate`."""

    def __init__(self, sqlstate: str, message: str, detail: str = ""):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.diag = PgDiag(message, detail)


def _db_error(orig: Exception) -> DBAPIError:
    return DBAPIError(f"SELECT {FEFO_ISSUE_FUNCTION}(%(barcode)s, %(type)s, %(qty)s, %(note)s)", None, orig)


@pytest.fixture
def procedure(monkeypatch):
    """Pretend the database is PostgreSQL with the issuance function installed.

    Only the function call is intercepted; every other query runs on SQLite.
    """
    state = {"result": 1, "error": None, "calls": []}
    real_scalar = Session.scalar

    def scalar(self, statement, *args, **kwargs):
        if isinstance(statement, TextClause) and FEFO_ISSUE_FUNCTION in statement.text:
            state["calls"].append(args[0] if args else kwargs.get("params"))
            if state["error"] is not None:
                raise state["error"]
            return state["result"]
        return real_scalar(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "scalar", scalar)
    monkeypatch.setattr(inventory_repository, "is_postgresql", lambda db: True)
    return state


def _issue(client, barcode: str, qty: int = 8):
    return client.post("/movements/issue", json={"barcode": barcode, "type": "OUT", "qty": qty})


def _movement_count(db) -> int:
    return db.scalar(select(func.count(InventoryMovement.id)))


def test_function_result_is_reported(client, make_variant, procedure):
    barcode = make_variant()
    procedure["result"] = 2

    res = client.post(
        "/movements/issue", json={"barcode": barcode, "type": "GIFT", "qty": 8, "note": "promo"}
    )

    assert res.status_code == 200, res.text
    assert res.json()["path"] == "atomic"
    assert res.json()["lots_touched"] == 2
    assert procedure["calls"] == [{"barcode": barcode, "type": "GIFT", "qty": 8, "note": "promo"}]


def test_missing_function_falls_back_to_client_split(client, make_variant, receive, procedure):
    barcode = make_variant()
    receive(barcode, "2026-01-10", 5)
    receive(barcode, "2026-01-20", 10)
    procedure["error"] = _db_error(PgError("42883", "function fefo_issue_by_barcode does not exist"))

    res = _issue(client, barcode)

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["path"] == "fallback"
    assert [(a["expiry_date"], a["qty"]) for a in body["allocations"]] == [
        ("2026-01-10", 5),
        ("2026-01-20", 3),
    ]
    assert len(procedure["calls"]) == 1


def test_item_not_registered_maps_to_404(client, make_variant, procedure):
    barcode = make_variant()
    procedure["error"] = _db_error(PgError("P0001", "item_not_registered", barcode))

    res = _issue(client, barcode)

    assert res.status_code == 404
    assert res.json()["detail"] == f"item not registered: {barcode}"


@pytest.mark.parametrize("error_cls", [PgError, Psycopg3Error])
def test_insufficient_stock_carries_available_total(client, db, make_variant, receive, procedure, error_cls):
    barcode = make_variant()
    receive(barcode, "2026-01-10", 3)
    before = _movement_count(db)
    procedure["error"] = _db_error(error_cls("P0001", "insufficient_stock", "3"))

    res = _issue(client, barcode)

    assert res.status_code == 409
    assert res.json()["detail"] == "insufficient stock: requested 8, available 3"
    # Rejected by the function: no client-side retry.
    assert len(procedure["calls"]) == 1
    assert _movement_count(db) == before


def test_remainder_is_a_consistency_fault(client, make_variant, procedure):
    barcode = make_variant()
    procedure["error"] = _db_error(PgError("P0001", "fefo_remainder", "2"))

    res = _issue(client, barcode)

    assert res.status_code == 500
    assert res.json()["detail"] == "internal stock allocation error"


def test_other_database_errors_are_write_failures(client, db, make_variant, receive, procedure):
    barcode = make_variant()
    receive(barcode, "2026-01-10", 20)
    before = _movement_count(db)
    procedure["error"] = _db_error(PgError("40P01", "deadlock detected"))

    res = _issue(client, barcode)

    assert res.status_code == 503
    assert len(procedure["calls"]) == 1
    assert _movement_count(db) == before
