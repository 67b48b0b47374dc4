import pytest
from fastapi.testclient import TestClient

import config
import main

NEW_PRODUCT = {
    "name": "Red Shirt",
    "price": "19.99",
    "sku": "RS-001",
    "dimensions": {"length": 10, "width": 20, "height": 30},
    "colors": [{
        "color_name": "Red",
        "hex_code": "#FF0000",
        "sizes_inventory": {"M": {"inventory": 30, "price": 19.99}},
    }],
}


@pytest.fixture
def client(documents, blobs):
    main.app.dependency_overrides[main.get_document_store] = lambda: documents
    main.app.dependency_overrides[main.get_blob_store] = lambda: blobs
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json() == {"message": "Catalog Admin API running"}


def test_product_lifecycle(client):
    res = client.post("/api/products", json=NEW_PRODUCT)
    assert res.status_code == 201
    product = res.json()
    assert product["price"] == 19.99
    assert product["version"] == 1

    res = client.patch(f"/api/products/{product['id']}", json={"edits": [
        {"op": "add_variant"},
        {"op": "set_variant_field", "index": 1, "field": "color_name", "value": "Blue"},
        {"op": "set_size_field", "index": 1, "size": "S", "field": "inventory", "value": "3"},
        {"op": "set_size_field", "index": 1, "size": "S", "field": "price", "value": "21"},
    ]})
    assert res.status_code == 200
    body = res.json()
    assert [c["color_name"] for c in body["colors"]] == ["Red", "Blue"]
    assert body["colors"][1]["sizes_inventory"] == {"S": {"inventory": 3, "price": 21.0}}

    assert client.get(f"/api/products/{product['id']}").json()["version"] == 2
    assert len(client.get("/api/products").json()) == 1

    assert client.delete(f"/api/products/{product['id']}").json() == {"deleted": True}
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_upload_color_images_and_fetch_asset(client):
    product = client.post("/api/products", json=NEW_PRODUCT).json()
    res = client.post(
        f"/api/products/{product['id']}/colors/0/images",
        files=[("files", ("front.jpg", b"front-bytes", "image/jpeg")), ("files", ("back.jpg", b"back-bytes", "image/jpeg"))],
    )
    assert res.status_code == 200
    images = res.json()["colors"][0]["images"]
    assert len(images) == 2
    assert images[0].endswith("-front.jpg")

    asset = client.get(images[0])
    assert asset.status_code == 200
    assert asset.content == b"front-bytes"
    assert asset.headers["content-type"] == "image/jpeg"


def test_upload_to_unknown_color(client):
    product = client.post("/api/products", json=NEW_PRODUCT).json()
    res = client.post(
        f"/api/products/{product['id']}/colors/3/images",
        files=[("files", ("front.jpg", b"x", "image/jpeg"))],
    )
    assert res.status_code == 400


def test_validation_errors_list_fields(client):
    res = client.post("/api/products", json={**NEW_PRODUCT, "price": "0", "colors": []})
    assert res.status_code == 422
    assert [v["path"] for v in res.json()["detail"]] == ["price", "colors"]


def test_version_conflict(client):
    product = client.post("/api/products", json=NEW_PRODUCT).json()
    edit = {"edits": [{"op": "set_field", "path": "name", "value": "A"}], "expected_version": 1}
    assert client.patch(f"/api/products/{product['id']}", json=edit).status_code == 200
    res = client.patch(f"/api/products/{product['id']}", json=edit)
    assert res.status_code == 409
    assert res.json()["version"] == 2


def test_template(client):
    body = client.get("/api/products/template").json()
    assert len(body["colors"]) == 1


def test_gallery_flow(client):
    urls = [client.post("/api/gallery", files={"file": (f"g{i}.jpg", b"g", "image/jpeg")}).json()["url"] for i in range(3)]
    assert sorted(client.get("/api/gallery").json()) == sorted(urls)

    res = client.post("/api/products/gallery", json={"product": {**NEW_PRODUCT, "colors": []}, "images": urls})
    assert res.status_code == 201
    assert res.json()["colors"][0]["images"] == urls

    res = client.post("/api/products/gallery", json={"product": NEW_PRODUCT, "images": urls[:2]})
    assert res.status_code == 422


def test_categories(client):
    assert client.post("/api/categories", json={"name": "Tops"}).status_code == 201
    client.post("/api/categories", json={"name": "Sale"})
    assert client.put("/api/categories/0", json={"name": "Shirts"}).json() == ["Shirts", "Sale"]
    assert client.delete("/api/categories/Sale").json() == ["Shirts"]
    assert client.get("/api/categories").json() == ["Shirts"]
    assert client.put("/api/categories/9", json={"name": "X"}).status_code == 400


def test_coupons(client):
    res = client.post("/api/coupons", json={"code": "WELCOME10", "discount": 10, "validUntil": "2025-12-31"})
    assert res.status_code == 201
    coupon = res.json()
    assert coupon["validUntil"] == "2025-12-31"
    assert client.get("/api/coupons").json()[0]["validUntil"] == "2025-12-31"
    assert client.post("/api/coupons", json={"code": "X", "discount": 101, "validUntil": "2025-12-31"}).status_code == 422
    assert client.delete(f"/api/coupons/{coupon['id']}").json() == {"deleted": True}


def test_orders(client, documents):
    documents.set("orders", "order_1", {
        "name": "Asha Rao",
        "deliveryAddress": "12 Market Road",
        "totalPrice": 599.99,
        "deliveryStatus": "Processing",
        "items": [{"name": "Kids T-Shirt", "price": 599.99, "quantity": 1}],
    })
    assert [o["id"] for o in client.get("/api/orders", params={"q": "asha"}).json()] == ["order_1"]
    assert client.get("/api/orders", params={"q": "zzz"}).json() == []

    res = client.patch("/api/orders/order_1/status", json={"deliveryStatus": "Delivered"})
    assert res.status_code == 200
    order = client.get("/api/orders/order_1").json()
    assert order["deliveryStatus"] == "Delivered"
    assert order["deliveryAddress"] == "12 Market Road"
    assert order["items"][0]["name"] == "Kids T-Shirt"

    assert client.patch("/api/orders/order_1/status", json={"deliveryStatus": "Lost"}).status_code == 422
    assert client.get("/api/orders/missing").status_code == 404


def test_seed(client):
    res = client.post("/api/seed", json={})
    assert res.json()["seeded"] == 1
    assert client.post("/api/seed", json={}).json()["message"] == "Already seeded"
    assert "Kids Wear" in client.get("/api/categories").json()


def test_admin_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_KEY", "secret")
    assert client.post("/api/categories", json={"name": "Tops"}).status_code == 401
    res = client.post("/api/categories", json={"name": "Tops"}, headers={"X-Admin-Key": "secret"})
    assert res.status_code == 201
    assert client.get("/api/categories").status_code == 200


def test_missing_database_reported(monkeypatch):
    monkeypatch.setattr(main, "db", None)
    with TestClient(main.app) as client:
        assert client.get("/api/products").status_code == 500
        assert client.get("/test").json()["database"] == "❌ Not Available"


def test_forced_seed_replaces_products(client):
    client.post("/api/seed", json={})
    res = client.post("/api/seed", json={"force": True})
    assert res.json()["seeded"] == 1
    products = client.get("/api/products").json()
    assert [p["id"] for p in products] == [res.json()["id"]]
