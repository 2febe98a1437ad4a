from fastapi.testclient import TestClient

from main import app
from routes.cart import CART_COOKIE


def _oud(make_product):
    return make_product("Oud Royale", [
        {"size": "10ml", "price": 2500, "in_stock": True},
        {"size": "50ml", "price": 9500, "discount_price": 8500, "in_stock": True, "photo_url": "/uploads/oud-50.jpg"},
        {"size": "100ml", "price": 16500, "in_stock": False},
    ], brand="Maison Aroma", cover_image_url="/uploads/oud.jpg")


def test_first_request_issues_session_cookie(client):
    res = client.get("/cart")
    assert res.status_code == 200
    assert res.json() == {"items": [], "count": 0, "total": 0}
    assert CART_COOKIE in res.cookies


def test_add_uses_variant_price_and_photo(client, make_product):
    product = _oud(make_product)
    cart = client.post("/cart/add", json={"product_id": str(product.id), "size": "50ml", "qty": 2}).json()

    assert cart["count"] == 2
    assert cart["total"] == 17000
    line = cart["items"][0]
    assert line["id"] == f"{product.id}:50ml"
    assert line["price"] == 8500
    assert line["brand"] == "Maison Aroma"
    assert line["image_url"] == "/uploads/oud-50.jpg"


def test_variants_are_separate_lines_and_repeat_adds_merge(client, make_product):
    product = _oud(make_product)
    pid = str(product.id)
    client.post("/cart/add", json={"product_id": pid, "size": "10ml"})
    client.post("/cart/add", json={"product_id": pid, "size": "50ml"})
    cart = client.post("/cart/add", json={"product_id": pid, "size": "10ml"}).json()

    assert {it["size"]: it["quantity"] for it in cart["items"]} == {"10ml": 2, "50ml": 1}
    assert cart["total"] == 2 * 2500 + 8500


def test_add_rejects_unknown_and_unavailable(client, make_product):
    product = _oud(make_product)
    pid = str(product.id)

    assert client.post("/cart/add", json={"product_id": "999", "size": "50ml"}).status_code == 404
    assert client.post("/cart/add", json={"product_id": pid, "size": "5ml"}).json()["detail"] == "Variant not found"
    out = client.post("/cart/add", json={"product_id": pid, "size": "100ml"})
    assert out.status_code == 400
    assert out.json()["detail"] == "Out of stock"
    assert client.get("/cart").json()["count"] == 0


def test_update_and_remove_lines(client, make_product):
    product = _oud(make_product)
    item_id = f"{product.id}:10ml"
    client.post("/cart/add", json={"product_id": str(product.id), "size": "10ml"})

    cart = client.put(f"/cart/items/{item_id}", json={"qty": 5}).json()
    assert cart["count"] == 5

    cart = client.put(f"/cart/items/{item_id}", json={"qty": 0}).json()
    assert cart["items"] == []

    assert client.put("/cart/items/missing", json={"qty": 1}).status_code == 404


def test_delete_line_and_clear(client, make_product):
    product = _oud(make_product)
    pid = str(product.id)
    client.post("/cart/add", json={"product_id": pid, "size": "10ml"})
    client.post("/cart/add", json={"product_id": pid, "size": "50ml"})

    cart = client.delete(f"/cart/items/{pid}:10ml").json()
    assert [it["size"] for it in cart["items"]] == ["50ml"]

    assert client.delete("/cart").json()["count"] == 0


def test_carts_are_per_session(client, make_product):
    product = _oud(make_product)
    client.post("/cart/add", json={"product_id": str(product.id), "size": "10ml"})

    with TestClient(app) as other:
        assert other.get("/cart").json()["count"] == 0
    assert client.get("/cart").json()["count"] == 1
