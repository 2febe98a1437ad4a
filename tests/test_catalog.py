import asyncio
import json
import threading

import httpx
import pytest

from schemas.product import ProductRecord
from utils.catalog import (
    ContentCatalog, DatabaseCatalog, any_in_stock, filter_products, get_catalog, select_display_price, select_primary_image,
    select_size_price, stock_status,
)
from utils.content_client import ContentAPIError, ContentClient, content_doc_to_record
from main import app

CONTENT_URL = "https://content.test/v1/data/query/production"

CONTENT_DOC = {
    "_id": "perfume-oud",
    "name": "Oud Royale",
    "slug": {"current": "oud-royale"},
    "brand": "Maison Aroma",
    "gender": "unisex",
    "perfumeType": "originals",
    "coverImageUrl": None,
    "variants": [
        {"size": "50ml", "price": 9500, "discountPrice": 8500, "inStock": True, "photoUrl": "https://cdn/oud-50.jpg"},
        {"size": "100ml", "price": 16500, "discountPrice": None, "inStock": None, "photoUrl": None},
    ],
    "mainAccords": [{"name": "oud", "percentage": 90, "color": {"hex": "#5b3a29"}}],
}


def _record(name="P", variants=None, **fields):
    return ProductRecord(id=fields.pop("id", name), name=name, variants=variants or [], **fields)


# ---- selectors ----

def test_primary_image_prefers_cover_then_first_variant_photo():
    assert select_primary_image(_record(cover_image_url="cover.jpg", variants=[{"photo_url": "v.jpg"}])) == "cover.jpg"
    assert select_primary_image(_record(variants=[{"photo_url": None}, {"photo_url": "v2.jpg"}])) == "v2.jpg"
    assert select_primary_image(_record()) is None


def test_display_price_is_lowest_effective_price():
    product = _record(variants=[
        {"size": "50ml", "price": 9500, "discount_price": 8500},
        {"size": "10ml", "price": 2500},
        {"size": "100ml", "price": None},
    ])
    assert select_display_price(product) == 2500
    assert select_display_price(_record(variants=[{"size": "x"}])) is None


def test_size_price_lookup():
    product = _record(variants=[{"size": "50ml", "price": 9500, "discount_price": 8500}])
    assert select_size_price(product, "50ml") == {"original_price": 9500, "discount_price": 8500}
    assert select_size_price(product, "10ml") == {}


def test_stock_badges():
    assert stock_status(_record()) == "no-variants"
    assert stock_status(_record(variants=[{"in_stock": True}, {"in_stock": True}])) == "in-stock"
    assert stock_status(_record(variants=[{"in_stock": True}, {"in_stock": None}])) == "partial"
    assert stock_status(_record(variants=[{"in_stock": False}])) == "out-of-stock"
    assert not any_in_stock(_record(variants=[{"in_stock": None}]))


def test_filters_combine():
    products = [
        _record("A", gender="female", perfume_type="inspired", variants=[{"price": 5000, "in_stock": True}]),
        _record("B", gender="male", perfume_type="originals", variants=[{"price": 15000, "in_stock": False}]),
        _record("C", gender="unisex", perfume_type="originals", variants=[{"price": None, "in_stock": True}]),
    ]
    names = lambda items: [p.name for p in items]

    assert names(filter_products(products, in_stock_only=True)) == ["A", "C"]
    assert names(filter_products(products, genders=["male", "unisex"])) == ["B", "C"]
    assert names(filter_products(products, perfume_types=["originals"])) == ["B", "C"]
    # Products without a price are never dropped by the range
    assert names(filter_products(products, price_min=6000)) == ["B", "C"]
    assert names(filter_products(products, price_max=6000)) == ["A", "C"]


# ---- database catalog ----

def test_shop_lists_and_filters_database_products(client, make_product):
    make_product("Oud Royale", [{"size": "50ml", "price": 9500, "discount_price": 8500, "in_stock": True}],
                 gender="unisex", perfume_type="originals", cover_image_url="/uploads/products/oud.jpg")
    make_product("Midnight Vetiver", [{"size": "50ml", "price": 4500, "in_stock": False}], gender="male")

    listed = client.get("/shop/products").json()
    assert listed["total"] == 2
    oud = next(p for p in listed["items"] if p["slug"] == "oud-royale")
    assert oud["display_price"] == 8500
    assert oud["in_stock"] is True
    assert oud["primary_image_url"] == "/uploads/products/oud.jpg"

    in_stock = client.get("/shop/products", params={"in_stock": "true"}).json()
    assert [p["name"] for p in in_stock["items"]] == ["Oud Royale"]

    male = client.get("/shop/products", params=[("gender", "male"), ("gender", "female")]).json()
    assert [p["name"] for p in male["items"]] == ["Midnight Vetiver"]

    cheap = client.get("/shop/products", params={"price_max": 5000}).json()
    assert [p["name"] for p in cheap["items"]] == ["Midnight Vetiver"]


def test_shop_detail_by_id_or_slug(client, make_product):
    product = make_product("Citrus Bloom", [{"size": "50ml", "price": 5000, "in_stock": True}],
                           main_accords=[{"name": "citrus", "percentage": 85, "color_hex": "#f9e04b"}])

    by_slug = client.get("/shop/products/citrus-bloom").json()
    by_id = client.get(f"/shop/products/{product.id}").json()
    assert by_slug["id"] == by_id["id"] == str(product.id)
    assert by_slug["main_accords"][0]["color_hex"] == "#f9e04b"
    assert client.get("/shop/products/nothing-here").status_code == 404


# ---- content API ----

def _content_client(handler):
    return ContentClient(base_url=CONTENT_URL, transport=httpx.MockTransport(handler))


def test_content_document_decoding():
    record = content_doc_to_record(CONTENT_DOC)
    assert record.id == "perfume-oud"
    assert record.slug == "oud-royale"
    assert record.perfume_type == "originals"
    assert record.variants[0].discount_price == 8500
    assert record.variants[0].photo_url == "https://cdn/oud-50.jpg"
    assert record.variants[1].in_stock is False
    assert record.main_accords[0].color_hex == "#5b3a29"


def test_content_client_lists_products():
    seen = {}

    def handler(request):
        seen["query"] = request.url.params["query"]
        return httpx.Response(200, json={"result": [CONTENT_DOC]})

    products = asyncio.run(_content_client(handler).fetch_products())
    assert [p.slug for p in products] == ["oud-royale"]
    assert '_type == "product"' in seen["query"]
    assert "order(name asc)" in seen["query"]


def test_content_client_passes_lookup_parameter():
    seen = {}

    def handler(request):
        seen["param"] = request.url.params["$idOrSlug"]
        return httpx.Response(200, json={"result": CONTENT_DOC})

    product = asyncio.run(_content_client(handler).fetch_product_by_id_or_slug("oud-royale"))
    assert product.name == "Oud Royale"
    assert json.loads(seen["param"]) == "oud-royale"


def test_content_client_errors():
    failing = _content_client(lambda request: httpx.Response(500, json={"error": "down"}))

    with pytest.raises(ContentAPIError):
        asyncio.run(failing.fetch_products())
    # Detail lookups degrade to not found
    assert asyncio.run(failing.fetch_product_by_id_or_slug("oud-royale")) is None

    missing = _content_client(lambda request: httpx.Response(200, json={"result": None}))
    assert asyncio.run(missing.fetch_product_by_id_or_slug("nothing")) is None


def test_shop_uses_content_catalog(client):
    app.dependency_overrides[get_catalog] = lambda: ContentCatalog(
        _content_client(lambda request: httpx.Response(200, json={"result": [CONTENT_DOC]}))
    )
    listed = client.get("/shop/products").json()
    assert listed["items"][0]["id"] == "perfume-oud"
    assert listed["items"][0]["display_price"] == 8500
    assert listed["items"][0]["primary_image_url"] == "https://cdn/oud-50.jpg"


def test_shop_reports_content_outage(client):
    app.dependency_overrides[get_catalog] = lambda: ContentCatalog(
        _content_client(lambda request: httpx.Response(503))
    )
    assert client.get("/shop/products").status_code == 502


def test_database_catalog_queries_leave_the_event_loop_free(db, make_product):
    make_product("Oud Royale", [{"size": "50ml", "price": 9500, "in_stock": True}])
    query_threads = []
    catalog = DatabaseCatalog(db)
    original_list, original_get = catalog._list_products, catalog._get_product
    catalog._list_products = lambda: query_threads.append(threading.get_ident()) or original_list()
    catalog._get_product = lambda key: query_threads.append(threading.get_ident()) or original_get(key)

    async def read_catalog():
        return threading.get_ident(), await catalog.list_products(), await catalog.get_product("oud-royale")

    loop_thread, products, product = asyncio.run(read_catalog())
    assert [p.name for p in products] == ["Oud Royale"]
    assert product.slug == "oud-royale"
    assert len(query_threads) == 2
    assert loop_thread not in query_threads
