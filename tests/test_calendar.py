from __future__ import annotations


def _memo(client, day: str, visibility: str, content: str):
    return client.put(f"/calendar/memos/{day}/{visibility}", json={"content": content})


def test_admin_memos_are_hidden_unless_requested(client):
    assert _memo(client, "2026-03-05", "PUBLIC", "Supplier visit").status_code == 200
    assert _memo(client, "2026-03-05", "ADMIN", "Check invoices").status_code == 200
    _memo(client, "2026-04-01", "PUBLIC", "Next month")

    public = client.get("/calendar", params={"month": "2026-03"}).json()
    assert public["month"] == "2026-03"
    assert [(m["memo_date"], m["visibility"]) for m in public["memos"]] == [("2026-03-05", "PUBLIC")]

    full = client.get("/calendar", params={"month": "2026-03", "include_admin": True}).json()
    assert [(m["visibility"], m["content"]) for m in full["memos"]] == [
        ("PUBLIC", "Supplier visit"),
        ("ADMIN", "Check invoices"),
    ]


def test_saving_again_replaces_the_memo(client):
    first = _memo(client, "2026-03-05", "PUBLIC", "Supplier visit").json()
    second = _memo(client, "2026-03-05", "PUBLIC", "  Supplier visit moved to 3pm ").json()

    assert second["id"] == first["id"]
    assert second["content"] == "Supplier visit moved to 3pm"
    memos = client.get("/calendar", params={"month": "2026-03"}).json()["memos"]
    assert len(memos) == 1


def test_empty_memo_is_rejected(client):
    res = _memo(client, "2026-03-05", "PUBLIC", "   ")

    assert res.status_code == 422
    assert client.get("/calendar", params={"month": "2026-03"}).json()["memos"] == []


def test_delete_memo(client):
    _memo(client, "2026-03-05", "ADMIN", "Check invoices")

    assert client.delete("/calendar/memos/2026-03-05/ADMIN").status_code == 204
    assert client.delete("/calendar/memos/2026-03-05/ADMIN").status_code == 404


def test_invalid_visibility_and_month(client):
    assert _memo(client, "2026-03-05", "PRIVATE", "x").status_code == 422
    assert client.get("/calendar", params={"month": "2026-13"}).status_code == 422
    assert client.get("/calendar", params={"month": "March"}).status_code == 422


def test_month_lists_live_orders_by_ship_date(client):
    def order(day: str) -> int:
        res = client.post(
            "/orders",
            json={
                "customer_name": "Acme",
                "ship_date": day,
                "ship_method": "택배",
                "lines": [{"name": "Tea", "qty": 2, "unit_price": 1000}],
            },
        )
        assert res.status_code == 200, res.text
        return res.json()["id"]

    late = order("2026-03-20")
    early = order("2026-03-02")
    cancelled = order("2026-03-10")
    order("2026-04-01")
    client.post(f"/orders/{cancelled}/cancel")

    orders = client.get("/calendar", params={"month": "2026-03"}).json()["orders"]

    assert [o["id"] for o in orders] == [early, late]
    assert orders[0]["ship_method"] == "택배"
    assert orders[0]["total_amount"] == 2200
