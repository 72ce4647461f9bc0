from __future__ import annotations


def test_create_and_list_by_month(client):
    for name, day in (("Mina", "2026-05-20"), ("Joon", "2026-05-03"), ("Mina", "2026-06-01")):
        res = client.post("/leave", json={"employee_name": name, "leave_date": day, "leave_type": "AM"})
        assert res.status_code == 200, res.text

    may = client.get("/leave", params={"month": "2026-05"})

    assert may.status_code == 200
    assert [(r["employee_name"], r["leave_date"]) for r in may.json()] == [
        ("Joon", "2026-05-03"),
        ("Mina", "2026-05-20"),
    ]


def test_one_request_per_employee_per_day(client):
    payload = {"employee_name": "Mina", "leave_date": "2026-05-20"}

    assert client.post("/leave", json=payload).status_code == 200
    assert client.post("/leave", json=payload).status_code == 409


def test_bad_month_is_rejected(client):
    assert client.get("/leave", params={"month": "May 2026"}).status_code == 422


def test_december_bounds(client):
    client.post("/leave", json={"employee_name": "Mina", "leave_date": "2026-12-31"})
    client.post("/leave", json={"employee_name": "Mina", "leave_date": "2027-01-01"})

    december = client.get("/leave", params={"month": "2026-12"}).json()

    assert [r["leave_date"] for r in december] == ["2026-12-31"]


def test_delete(client):
    leave = client.post("/leave", json={"employee_name": "Mina", "leave_date": "2026-05-20"}).json()

    assert client.delete(f"/leave/{leave['id']}").status_code == 204
    assert client.get("/leave", params={"month": "2026-05"}).json() == []
    assert client.delete(f"/leave/{leave['id']}").status_code == 404
