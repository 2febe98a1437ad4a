# backend/utils/catalog.py
import re
from typing import Iterable, List, Optional

from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.product import Product
from schemas.product import ProductRecord, ProductVariant, ProductOut
from utils.content_client import ContentClient, content_client


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def product_to_record(product: Product) -> ProductRecord:
    return ProductRecord.model_validate(product)


# ---- selectors ----

def select_primary_image(product: ProductRecord) -> Optional[str]:
    if product.cover_image_url:
        return product.cover_image_url
    for v in product.variants:
        if v.photo_url:
            return v.photo_url
    return None


def select_display_price(product: ProductRecord) -> Optional[float]:
    """Lowest effective (discounted if set) price across variants."""
    prices = [v.effective_price for v in product.variants if v.effective_price is not None]
    return min(prices) if prices else None


def select_variant(product: ProductRecord, size: Optional[str]) -> Optional[ProductVariant]:
    for v in product.variants:
        if v.size == size:
            return v
    return None


def select_size_price(product: ProductRecord, size: str) -> dict:
    variant = select_variant(product, size)
    if not variant:
        return {}
    return {"original_price": variant.price, "discount_price": variant.discount_price}


def any_in_stock(product: ProductRecord) -> bool:
    return any(v.in_stock for v in product.variants)


def stock_status(product: ProductRecord) -> str:
    if not product.variants:
        return "no-variants"
    in_stock = sum(1 for v in product.variants if v.in_stock)
    if in_stock == len(product.variants):
        return "in-stock"
    if in_stock > 0:
        return "partial"
    return "out-of-stock"


def to_catalog_out(product: ProductRecord) -> ProductOut:
    return ProductOut(
        **product.model_dump(),
        primary_image_url=select_primary_image(product),
        display_price=select_display_price(product),
        in_stock=any_in_stock(product),
    )


def filter_products(
    products: Iterable[ProductRecord],
    in_stock_only: bool = False,
    genders: Optional[List[str]] = None,
    perfume_types: Optional[List[str]] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
) -> List[ProductRecord]:
    result = []
    for p in products:
        if in_stock_only and not any_in_stock(p):
            continue
        if genders and p.gender not in genders:
            continue
        if perfume_types and p.perfume_type not in perfume_types:
            continue
        # Products without any price are never excluded by the price range
        price = select_display_price(p)
        if price_min is not None and price is not None and price < price_min:
            continue
        if price_max is not None and price is not None and price > price_max:
            continue
        result.append(p)
    return result


# ---- sources ----

class DatabaseCatalog:
    """Catalog read from the products table.

    The routes using a catalog are async for the content source, so the
    blocking queries are handed to the threadpool.
    """

    def __init__(self, db: Session):
        self.db = db

    async def list_products(self) -> List[ProductRecord]:
        return await run_in_threadpool(self._list_products)

    async def get_product(self, id_or_slug: str) -> Optional[ProductRecord]:
        return await run_in_threadpool(self._get_product, id_or_slug)

    def _list_products(self) -> List[ProductRecord]:
        rows = self.db.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).all()
        return [product_to_record(p) for p in rows]

    def _get_product(self, id_or_slug: str) -> Optional[ProductRecord]:
        product = None
        if str(id_or_slug).isdigit():
            product = self.db.get(Product, int(id_or_slug))
        if not product:
            product = self.db.query(Product).filter(Product.slug == id_or_slug).first()
        return product_to_record(product) if product else None


class ContentCatalog:
    def __init__(self, client: ContentClient):
        self.client = client

    async def list_products(self) -> List[ProductRecord]:
        return await self.client.fetch_products()

    async def get_product(self, id_or_slug: str) -> Optional[ProductRecord]:
        return await self.client.fetch_product_by_id_or_slug(id_or_slug)


def get_catalog(db: Session = Depends(get_db)):
    if settings.CATALOG_SOURCE == "content":
        return ContentCatalog(content_client)
    return DatabaseCatalog(db)
