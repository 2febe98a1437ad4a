# backend/routes/products.py
import json
import logging
from typing import Optional, List, Literal
from fastapi import (
    APIRouter, Depends, HTTPException, Query, Request,
    UploadFile, File, Form
)
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from models.product import Product
from schemas.product import (
    ProductVariant, MainAccord, ProductEditRequest, AdminProductOut, AdminProductPage, Gender, PerfumeType,
)
from utils.audit import write_log, client_ip
from utils.catalog import product_to_record, slugify, stock_status
from utils.storage import IMAGE_EXTENSIONS, LocalBlobStorage, StorageError, get_storage, product_image_path
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)

IMAGE_TYPES = set(IMAGE_EXTENSIONS)

_variants_adapter = TypeAdapter(List[ProductVariant])
_accords_adapter = TypeAdapter(List[MainAccord])
_indexes_adapter = TypeAdapter(List[int])


# ---- HELPERS ----
def _to_admin_out(p: Product) -> AdminProductOut:
    record = product_to_record(p)
    return AdminProductOut(**record.model_dump(), stock_status=stock_status(record), created_at=p.created_at)

def _parse_json_list(raw: Optional[str], adapter: TypeAdapter, field: str) -> list:
    if not raw:
        return []
    try:
        return adapter.validate_python(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=422, detail={field: f"Invalid {field}: {e}"})

def _unique_slug(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(name) or "product"
    slug, n = base, 2
    while True:
        q = db.query(Product).filter(Product.slug == slug)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if not q.first():
            return slug
        slug = f"{base}-{n}"
        n += 1

def _upload_image(storage: LocalBlobStorage, file: UploadFile, slug: str, label: str) -> str:
    if file.content_type not in IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type")
    try:
        return storage.upload(product_image_path(slug, label, file.content_type), file.file.read(), file.content_type)
    except StorageError as e:
        logger.exception("Product image upload failed")
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        file.file.close()


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=AdminProductPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name or brand"),
    stock: Optional[Literal["in-stock", "partial", "out-of-stock", "no-variants"]] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Product)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.brand.ilike(like)))

    rows = [_to_admin_out(p) for p in query.order_by(Product.created_at.desc(), Product.id.desc()).all()]
    # Stock badge is computed from the variant documents, so the tab filter runs in Python
    if stock:
        rows = [r for r in rows if r.stock_status == stock]

    total = len(rows)
    items = rows[(page - 1) * page_size: page * page_size]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=AdminProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _to_admin_out(product)


# =========================
# ADD PRODUCT
# =========================
@router.post("", response_model=AdminProductOut, status_code=201)
def add_product(
    request: Request,
    name: str = Form(...),
    variants: str = Form(..., description="JSON list of variants"),
    brand: Optional[str] = Form(None),
    gender: Optional[Gender] = Form(None),
    perfume_type: Optional[PerfumeType] = Form(None),
    description_text: Optional[str] = Form(None),
    main_accords: Optional[str] = Form(None, description="JSON list of accords"),
    cover: Optional[UploadFile] = File(None),
    variant_photos: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    current_user: User = Depends(require_admin),
):
    if not name.strip():
        raise HTTPException(status_code=422, detail={"name": "Name is required"})
    variant_list = _parse_json_list(variants, _variants_adapter, "variants")
    if not variant_list:
        raise HTTPException(status_code=422, detail={"variants": "At least one variant is required"})
    accord_list = _parse_json_list(main_accords, _accords_adapter, "main_accords")

    slug = _unique_slug(db, name)
    cover_url = _upload_image(storage, cover, slug, "cover") if cover is not None and cover.filename else None

    # Photos are matched to variants by position
    for idx, photo in enumerate(variant_photos or []):
        if idx < len(variant_list) and photo.filename:
            variant_list[idx].photo_url = _upload_image(storage, photo, slug, f"variant-{idx}")

    product = Product(
        name=name.strip(), slug=slug, brand=brand, gender=gender, perfume_type=perfume_type,
        description_text=description_text, cover_image_url=cover_url,
        variants=[v.model_dump() for v in variant_list],
        main_accords=[a.model_dump() for a in accord_list],
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        resource_id=product.id, ip=client_ip(request), meta={"slug": product.slug}
    )
    return _to_admin_out(product)


# =========================
# PARTIAL EDIT (PATCH)
# =========================
@router.patch("/{product_id}", response_model=AdminProductOut)
def edit_product(
    product_id: int,
    payload: ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        if not changes["name"].strip():
            raise HTTPException(status_code=422, detail={"name": "Name is required"})
        p.name = changes["name"].strip()
        p.slug = _unique_slug(db, p.name, exclude_id=p.id)
    for field in ("brand", "gender", "perfume_type", "description_text"):
        if field in changes:
            setattr(p, field, changes[field])
    if payload.variants is not None:
        p.variants = [v.model_dump() for v in payload.variants]
    if payload.main_accords is not None:
        p.main_accords = [a.model_dump() for a in payload.main_accords]

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        resource_id=p.id, ip=client_ip(request), meta={"fields": sorted(changes)}
    )
    return _to_admin_out(p)


# =========================
# REPLACE IMAGES
# =========================
@router.post("/{product_id}/images", response_model=AdminProductOut)
def replace_product_images(
    product_id: int,
    request: Request,
    cover: Optional[UploadFile] = File(None),
    variant_photos: Optional[List[UploadFile]] = File(None),
    variant_indexes: Optional[str] = Form(None, description="JSON list of variant positions, one per photo"),
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    current_user: User = Depends(require_admin),
):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")

    photos = [f for f in (variant_photos or []) if f.filename]
    # Without explicit positions photos are matched to variants in order
    positions = _parse_json_list(variant_indexes, _indexes_adapter, "variant_indexes") or list(range(len(photos)))
    if len(positions) != len(photos) or any(idx < 0 or idx >= len(p.variants or []) for idx in positions):
        raise HTTPException(status_code=422, detail={"variant_indexes": "Photos do not match the product variants"})

    changed = []
    if cover is not None and cover.filename:
        p.cover_image_url = _upload_image(storage, cover, p.slug, "cover")
        changed.append("cover")

    if photos:
        variants = [dict(v) for v in p.variants]
        for idx, photo in zip(positions, photos):
            variants[idx]["photo_url"] = _upload_image(storage, photo, p.slug, f"variant-{idx}")
            changed.append(f"variant-{idx}")
        # Reassign so the JSON column is flagged dirty
        p.variants = variants

    if changed:
        db.commit()
        db.refresh(p)
        write_log(
            db, user_id=current_user.id, action="PRODUCT_IMAGES", resource="products",
            resource_id=p.id, ip=client_ip(request), meta={"images": changed}
        )
    return _to_admin_out(p)


# =========================
# DELETE
# =========================
@router.delete("/{product_id}")
def delete_product(
    product_id: int, request: Request, db: Session = Depends(get_db), current_user: User = Depends(require_admin),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    pid, pname = product.id, product.name
    db.delete(product)
    db.commit()
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              resource_id=pid, ip=client_ip(request))
    return {"detail": f"Product '{pname}' deleted"}
