# backend/utils/content_client.py
import json
import logging
from typing import List, Optional

import httpx

from config import settings
from schemas.product import ProductRecord

logger = logging.getLogger(__name__)

PRODUCT_PROJECTION = """{
    _id,
    name,
    slug,
    brand,
    gender,
    perfumeType,
    "coverImageUrl": coverImage.asset->url,
    variants[]{
      size,
      price,
      discountPrice,
      inStock,
      "photoUrl": photo.asset->url
    }
  }"""

PRODUCT_DETAIL_PROJECTION = """{
    _id,
    name,
    slug,
    brand,
    gender,
    perfumeType,
    "coverImageUrl": coverImage.asset->url,
    variants[]{
      size,
      price,
      discountPrice,
      inStock,
      "photoUrl": photo.asset->url
    },
    "descriptionText": pt::text(description),
    mainAccords[]{name, percentage, color}
  }"""


class ContentAPIError(Exception):
    pass


def content_doc_to_record(doc: dict) -> ProductRecord:
    """Decode one content-API product document (camelCase, nested slug/color) into a ProductRecord."""
    slug = doc.get("slug") or {}
    return ProductRecord(
        id=doc.get("_id"),
        name=doc.get("name") or "",
        slug=slug.get("current") if isinstance(slug, dict) else slug,
        brand=doc.get("brand"),
        gender=doc.get("gender"),
        perfume_type=doc.get("perfumeType"),
        cover_image_url=doc.get("coverImageUrl"),
        description_text=doc.get("descriptionText"),
        variants=[
            {
                "size": v.get("size"),
                "price": v.get("price"),
                "discount_price": v.get("discountPrice"),
                "in_stock": v.get("inStock"),
                "photo_url": v.get("photoUrl"),
            }
            for v in (doc.get("variants") or [])
        ],
        main_accords=[
            {
                "name": a.get("name"),
                "percentage": a.get("percentage"),
                "color_hex": (a.get("color") or {}).get("hex"),
            }
            for a in (doc.get("mainAccords") or [])
        ],
    )


class ContentClient:
    """Read-only client for the headless content query API."""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url or settings.CONTENT_API_URL or (
            f"https://{settings.CONTENT_PROJECT_ID}.api.sanity.io/"
            f"{settings.CONTENT_API_VERSION}/data/query/{settings.CONTENT_DATASET}"
        )
        self.transport = transport

    async def _query(self, groq: str, params: Optional[dict] = None):
        query_params = {"query": groq}
        # Query parameters travel as $name=<json value>
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)
        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.get(self.base_url, params=query_params)
                response.raise_for_status()
                return response.json().get("result")
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Content API query failed: {e}")
                raise ContentAPIError(f"Failed to fetch products from content API: {e}") from e

    async def fetch_products(self) -> List[ProductRecord]:
        result = await self._query(f'*[_type == "product"]{PRODUCT_PROJECTION} | order(name asc)')
        return [content_doc_to_record(doc) for doc in (result or [])]

    async def fetch_product_by_id_or_slug(self, id_or_slug: str) -> Optional[ProductRecord]:
        groq = (
            '*[_type == "product" && (_id == $idOrSlug || slug.current == $idOrSlug)][0]'
            f"{PRODUCT_DETAIL_PROJECTION}"
        )
        try:
            result = await self._query(groq, {"idOrSlug": id_or_slug})
        except ContentAPIError:
            # A failed detail lookup renders as not found
            return None
        return content_doc_to_record(result) if result else None


content_client = ContentClient()
