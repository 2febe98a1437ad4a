import json

VARIANTS = [
    {"size": "50ml", "price": 9500, "discount_price": 8500, "in_stock": True},
    {"size": "100ml", "price": 16500, "in_stock": False},
]


def _create(client, headers, name="Oud Royale", variants=VARIANTS, files=None, **fields):
    data = {"name": name, "variants": json.dumps(variants), **fields}
    return client.post("/products", data=data, files=files, headers=headers)


def test_create_product_with_images(client, admin_headers, storage):
    res = _create(
        client, admin_headers,
        brand="Maison Aroma", gender="unisex", perfume_type="originals",
        main_accords=json.dumps([{"name": "oud", "percentage": 90, "color_hex": "#5b3a29"}]),
        files=[
            ("cover", ("cover.png", b"\x89PNGcover", "image/png")),
            ("variant_photos", ("fifty.jpg", b"jpg-50", "image/jpeg")),
        ],
    )
    assert res.status_code == 201
    body = res.json()
    assert body["slug"] == "oud-royale"
    assert body["stock_status"] == "partial"
    assert body["cover_image_url"].startswith("/uploads/products/oud-royale/cover-")
    assert body["variants"][0]["photo_url"].startswith("/uploads/products/oud-royale/variant-0-")
    assert body["variants"][1]["photo_url"] is None
    assert body["main_accords"][0]["name"] == "oud"
    assert storage.exists(body["cover_image_url"][len("/uploads/"):])


def test_duplicate_names_get_distinct_slugs(client, admin_headers):
    first = _create(client, admin_headers).json()
    second = _create(client, admin_headers).json()
    assert first["slug"] == "oud-royale"
    assert second["slug"] == "oud-royale-2"


def test_create_requires_variants_and_name(client, admin_headers):
    assert _create(client, admin_headers, variants=[]).status_code == 422
    assert _create(client, admin_headers, name="   ").status_code == 422
    bad = client.post("/products", data={"name": "X", "variants": "not json"}, headers=admin_headers)
    assert bad.status_code == 422


def test_create_rejects_non_image_cover(client, admin_headers):
    res = _create(client, admin_headers, files=[("cover", ("cover.pdf", b"%PDF", "application/pdf"))])
    assert res.status_code == 400


def test_list_filters_by_stock_and_search(client, admin_headers):
    _create(client, admin_headers, name="Oud Royale")
    _create(client, admin_headers, name="Citrus Bloom", variants=[{"size": "50ml", "price": 5000, "in_stock": True}])
    _create(client, admin_headers, name="Midnight Vetiver", variants=[{"size": "50ml", "price": 4500}])

    everything = client.get("/products", headers=admin_headers).json()
    assert everything["total"] == 3

    partial = client.get("/products", params={"stock": "partial"}, headers=admin_headers).json()
    assert [p["name"] for p in partial["items"]] == ["Oud Royale"]

    out = client.get("/products", params={"stock": "out-of-stock"}, headers=admin_headers).json()
    assert [p["name"] for p in out["items"]] == ["Midnight Vetiver"]

    search = client.get("/products", params={"q": "citrus"}, headers=admin_headers).json()
    assert [p["name"] for p in search["items"]] == ["Citrus Bloom"]


def test_edit_product(client, admin_headers):
    created = _create(client, admin_headers).json()

    res = client.patch(f"/products/{created['id']}", headers=admin_headers, json={
        "name": "Oud Royale Intense",
        "variants": [{"size": "50ml", "price": 9900, "in_stock": True}],
    })
    assert res.status_code == 200
    body = res.json()
    assert body["slug"] == "oud-royale-intense"
    assert body["stock_status"] == "in-stock"
    assert body["brand"] is None

    assert client.patch(f"/products/{created['id']}", headers=admin_headers,
                        json={"variants": []}).status_code == 422


def test_cover_extension_ignores_the_client_filename(client, admin_headers):
    res = _create(client, admin_headers, files=[("cover", ("cover.svg", b"<svg onload=alert(1)>", "image/png"))])
    assert res.status_code == 201
    assert res.json()["cover_image_url"].endswith(".png")


def test_replace_cover_keeps_variant_photos(client, admin_headers, storage):
    created = _create(client, admin_headers, files=[
        ("cover", ("cover.png", b"old-cover", "image/png")),
        ("variant_photos", ("fifty.jpg", b"jpg-50", "image/jpeg")),
    ]).json()

    res = client.post(f"/products/{created['id']}/images", headers=admin_headers,
                      files=[("cover", ("new.webp", b"new-cover", "image/webp"))])
    assert res.status_code == 200
    body = res.json()
    assert body["cover_image_url"] != created["cover_image_url"]
    assert body["cover_image_url"].startswith("/uploads/products/oud-royale/cover-")
    assert body["cover_image_url"].endswith(".webp")
    assert storage.exists(body["cover_image_url"][len("/uploads/"):])
    assert body["variants"][0]["photo_url"] == created["variants"][0]["photo_url"]

    # Persisted, not just echoed back
    stored = client.get(f"/products/{created['id']}", headers=admin_headers).json()
    assert stored["cover_image_url"] == body["cover_image_url"]


def test_replace_variant_photo_by_position(client, admin_headers):
    created = _create(client, admin_headers, files=[("cover", ("cover.png", b"cover", "image/png"))]).json()

    res = client.post(
        f"/products/{created['id']}/images", headers=admin_headers,
        data={"variant_indexes": json.dumps([1])},
        files=[("variant_photos", ("hundred.jpg", b"jpg-100", "image/jpeg"))],
    )
    assert res.status_code == 200
    body = res.json()
    assert body["cover_image_url"] == created["cover_image_url"]
    assert body["variants"][0]["photo_url"] is None
    assert body["variants"][1]["photo_url"].startswith("/uploads/products/oud-royale/variant-1-")
    assert body["variants"][1]["price"] == 16500


def test_replace_images_validation(client, admin_headers):
    created = _create(client, admin_headers).json()
    url = f"/products/{created['id']}/images"

    out_of_range = client.post(url, headers=admin_headers, data={"variant_indexes": json.dumps([5])},
                               files=[("variant_photos", ("p.jpg", b"jpg", "image/jpeg"))])
    assert out_of_range.status_code == 422

    not_image = client.post(url, headers=admin_headers, files=[("cover", ("c.pdf", b"%PDF", "application/pdf"))])
    assert not_image.status_code == 400

    assert client.post("/products/9999/images", headers=admin_headers,
                       files=[("cover", ("c.png", b"png", "image/png"))]).status_code == 404
    assert client.post(url, files=[("cover", ("c.png", b"png", "image/png"))]).status_code == 401


def test_delete_product(client, admin_headers):
    created = _create(client, admin_headers).json()

    assert client.delete(f"/products/{created['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/products/{created['id']}", headers=admin_headers).status_code == 404
    assert client.get(f"/shop/products/{created['slug']}").status_code == 404


def test_admin_product_routes_need_auth(client):
    assert client.get("/products").status_code == 401
    assert client.post("/products", data={"name": "X", "variants": json.dumps(VARIANTS)}).status_code == 401
