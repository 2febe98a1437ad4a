import logging
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query

from schemas.product import ProductOut, ProductPage, Gender, PerfumeType
from utils.catalog import filter_products, get_catalog, to_catalog_out
from utils.content_client import ContentAPIError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)

# Public catalog with the storefront filters
@router.get("/products", response_model=ProductPage)
async def list_products_for_shop(
    in_stock: bool = Query(False, description="Only products with a variant in stock"),
    gender: Optional[List[Gender]] = Query(None),
    perfume_type: Optional[List[PerfumeType]] = Query(None),
    price_min: Optional[float] = Query(None, ge=0),
    price_max: Optional[float] = Query(None, ge=0),
    catalog = Depends(get_catalog),
):
    try:
        products = await catalog.list_products()
    except ContentAPIError as e:
        logger.error("Catalog unavailable: %s", e)
        raise HTTPException(status_code=502, detail="Products are unavailable right now. Please try again.")

    selected = filter_products(
        products,
        in_stock_only=in_stock,
        genders=gender,
        perfume_types=perfume_type,
        price_min=price_min,
        price_max=price_max,
    )
    return {"items": [to_catalog_out(p) for p in selected], "total": len(selected)}


# Product detail by id or slug
@router.get("/products/{id_or_slug}", response_model=ProductOut)
async def get_shop_product(id_or_slug: str, catalog = Depends(get_catalog)):
    product = await catalog.get_product(id_or_slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return to_catalog_out(product)
