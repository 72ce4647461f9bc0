from __future__ import annotations


def test_create_product_with_variants(client):
    res = client.post(
        "/products",
        json={
            "name": "Green tea",
            "category": "Tea",
            "variants": [
                {"barcode": "tea 500", "variant_name": "500g", "pack_unit": 1},
                {"barcode": "TEA-BOX", "variant_name": "Box", "pack_unit": 12},
            ],
        },
    )

    assert res.status_code == 200, res.text
    body = res.json()
    assert [v["barcode"] for v in body["variants"]] == ["TEA500", "TEA-BOX"]

    info = client.get("/variants/tea-box")
    assert info.status_code == 200
    assert info.json()["product_name"] == "Green tea"
    assert info.json()["pack_unit"] == 12


def test_duplicate_barcode_conflicts(client, make_variant):
    make_variant("SKU-001")

    res = client.post("/products", json={"name": "Other", "variants": [{"barcode": "sku-001"}]})

    assert res.status_code == 409


def test_add_variant_and_search(client, make_variant):
    make_variant("SKU-001", "Green tea")
    product_id = client.get("/products").json()[0]["id"]

    added = client.post(f"/products/{product_id}/variants", json={"barcode": "SKU-002", "variant_name": "1kg"})

    assert added.status_code == 200, added.text
    assert [p["name"] for p in client.get("/products", params={"q": "SKU-002"}).json()] == ["Green tea"]
    assert client.get("/products", params={"q": "coffee"}).json() == []


def test_unknown_variant_is_not_found(client):
    assert client.get("/variants/NOPE").status_code == 404
    assert client.delete("/variants/999").status_code == 404


def test_variant_with_history_cannot_be_deleted(client, make_variant, receive):
    barcode = make_variant("SKU-001")
    receive(barcode, "2026-01-10", 1)
    variant_id = client.get(f"/variants/{barcode}").json()["variant_id"]

    res = client.delete(f"/variants/{variant_id}")

    assert res.status_code == 409
    assert client.get(f"/variants/{barcode}").status_code == 200


def test_unused_variant_can_be_deleted(client, make_variant):
    barcode = make_variant("SKU-001")
    variant_id = client.get(f"/variants/{barcode}").json()["variant_id"]

    assert client.delete(f"/variants/{variant_id}").status_code == 204
    assert client.get(f"/variants/{barcode}").status_code == 404


def test_partners_pinned_first(client):
    client.post("/partners", json={"name": "Alpha"})
    client.post("/partners", json={"name": "Zulu", "is_pinned": True})
    client.post("/partners", json={"name": "Beta", "business_no": "123-45-67890"})

    assert [p["name"] for p in client.get("/partners").json()] == ["Zulu", "Alpha", "Beta"]
    assert [p["name"] for p in client.get("/partners", params={"q": "123-45"}).json()] == ["Beta"]
    assert client.post("/partners", json={"name": "  "}).status_code == 422


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
