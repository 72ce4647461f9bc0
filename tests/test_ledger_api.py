from __future__ import annotations


def _entry(client, **overrides) -> dict:
    payload = {"entry_date": "2026-03-01", "amount": 1000, "category": "Sales receipt"}
    payload.update(overrides)
    res = client.post("/ledger", json=payload)
    assert res.status_code == 200, res.text
    return res.json()


def _order(client, ship_date: str, unit_price: int, **overrides) -> dict:
    payload = {
        "customer_name": "Acme",
        "ship_date": ship_date,
        "lines": [{"name": "Tea", "qty": 1, "unit_price": unit_price}],
    }
    payload.update(overrides)
    res = client.post("/orders", json=payload)
    assert res.status_code == 200, res.text
    return res.json()


def test_direction_follows_category(client):
    assert _entry(client, category="Sales receipt")["direction"] == "IN"
    assert _entry(client, category="Rent")["direction"] == "OUT"
    assert _entry(client, category="Something new")["direction"] == "OUT"
    assert _entry(client, category="Rent", direction="IN")["direction"] == "IN"


def test_missing_category_uses_default(client):
    entry = _entry(client, category=None)

    assert entry["category"] == "Sales receipt"
    assert entry["direction"] == "IN"


def test_amount_must_be_positive(client):
    res = client.post("/ledger", json={"entry_date": "2026-03-01", "amount": 0})

    assert res.status_code == 422


def test_partner_snapshot_is_copied(client):
    partner = client.post("/partners", json={"name": "Paper Co", "business_no": "111-22-33333"}).json()

    entry = _entry(client, category="Purchase", partner_id=partner["id"])

    assert entry["counterparty_name"] == "Paper Co"
    assert entry["business_no"] == "111-22-33333"


def test_list_totals_skip_void_entries(client):
    _entry(client, amount=500, category="Sales receipt")
    rent = _entry(client, amount=200, category="Rent")
    _entry(client, amount=900, category="Sales receipt", entry_date="2026-03-02")
    client.post(f"/ledger/{rent['id']}/void")

    res = client.get("/ledger", params={"date_from": "2026-03-01", "date_to": "2026-03-31"})

    assert res.status_code == 200
    body = res.json()
    assert len(body["entries"]) == 3
    assert body["entries"][0]["entry_date"] == "2026-03-02"
    assert (body["total_in"], body["total_out"], body["net"]) == (1400, 0, 1400)

    posted_only = client.get("/ledger", params={"include_void": False}).json()
    assert len(posted_only["entries"]) == 2


def test_list_filters(client):
    _entry(client, category="Card fees", method="CARD", counterparty_name="Bank A")
    _entry(client, category="Rent", method="BANK", counterparty_name="Landlord")

    by_method = client.get("/ledger", params={"method": "CARD"}).json()
    by_category = client.get("/ledger", params={"category": "ren"}).json()
    by_text = client.get("/ledger", params={"q": "landlord"}).json()

    assert [e["category"] for e in by_method["entries"]] == ["Card fees"]
    assert [e["category"] for e in by_category["entries"]] == ["Rent"]
    assert [e["counterparty_name"] for e in by_text["entries"]] == ["Landlord"]


def test_void_twice_conflicts(client):
    entry = _entry(client)

    first = client.post(f"/ledger/{entry['id']}/void")
    second = client.post(f"/ledger/{entry['id']}/void")

    assert first.status_code == 200
    assert first.json()["status"] == "VOID"
    assert second.status_code == 409
    assert client.post("/ledger/999/void").status_code == 404


def test_ledger_book_running_balance(client):
    _entry(client, entry_date="2026-02-15", amount=1000, category="Sales receipt")
    _entry(client, entry_date="2026-03-01", amount=500, category="Sales receipt")
    _entry(client, entry_date="2026-03-02", amount=300, category="Rent")

    res = client.get("/ledger/book", params={"date_from": "2026-03-01", "date_to": "2026-03-31"})

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["opening_balance"] == 1000
    assert [r["balance"] for r in body["rows"]] == [1200, 1500]
    assert body["final_balance"] == 1200


def test_trade_view_mixes_orders_and_ledger(client):
    _order(client, "2026-02-20", 1000)  # 1100 incl. VAT
    _entry(client, entry_date="2026-02-25", amount=600, counterparty_name="Acme")
    _order(client, "2026-03-03", 2000)  # 2200 incl. VAT
    _entry(client, entry_date="2026-03-10", amount=2200, counterparty_name="Acme")

    res = client.get("/trades", params={"date_from": "2026-03-01", "date_to": "2026-03-31"})

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["opening_balance"] == 600 - 1100
    assert [(r["kind"], r["balance"]) for r in body["rows"]] == [("LEDGER", -500), ("ORDER", -2700)]
    assert body["total_in"] == 2200
    assert body["total_out"] == 2200
    assert body["final_balance"] == -500


def test_trade_view_without_opening(client):
    _entry(client, entry_date="2026-02-25", amount=600)
    _entry(client, entry_date="2026-03-10", amount=100)

    res = client.get(
        "/trades", params={"date_from": "2026-03-01", "date_to": "2026-03-31", "include_opening": False}
    )

    assert res.json()["opening_balance"] == 0
    assert res.json()["final_balance"] == 100


def test_trade_view_filters_by_partner(client):
    partner = client.post("/partners", json={"name": "Acme", "business_no": "555-55-55555"}).json()
    _order(client, "2026-03-03", 1000, partner_id=partner["id"])
    _order(client, "2026-03-03", 5000, customer_name="Other shop")
    _entry(client, entry_date="2026-03-05", amount=700, business_no="555-55-55555")
    _entry(client, entry_date="2026-03-05", amount=900, counterparty_name="Other shop")

    res = client.get(
        "/trades",
        params={"date_from": "2026-03-01", "date_to": "2026-03-31", "partner_id": partner["id"]},
    )

    body = res.json()
    assert body["total_out"] == 1100
    assert body["total_in"] == 700


def test_trade_view_rejects_reversed_period(client):
    res = client.get("/trades", params={"date_from": "2026-03-31", "date_to": "2026-03-01"})

    assert res.status_code == 422
