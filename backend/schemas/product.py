# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal, Any
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


Gender = Literal["female", "male", "unisex"]
PerfumeType = Literal["originals", "inspired"]


# A purchasable configuration of a product (usually a bottle size)
class ProductVariant(BaseModel):
    size: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    in_stock: bool = False
    photo_url: Optional[str] = None

    @field_validator("in_stock", mode="before")
    @classmethod
    def _none_is_out_of_stock(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def effective_price(self) -> Optional[float]:
        return self.discount_price if self.discount_price is not None else self.price


class MainAccord(BaseModel):
    name: Optional[str] = None
    percentage: Optional[float] = None
    color_hex: Optional[str] = None


# Decoded product document, shared by the database and content-API catalogs
class ProductRecord(ORMBase):
    id: str
    name: str
    slug: Optional[str] = None
    brand: Optional[str] = None
    gender: Optional[Gender] = None
    perfume_type: Optional[PerfumeType] = None
    cover_image_url: Optional[str] = None
    description_text: Optional[str] = None
    variants: List[ProductVariant] = Field(default_factory=list)
    main_accords: List[MainAccord] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("variants", "main_accords", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# Public catalog card / detail payload
class ProductOut(ProductRecord):
    primary_image_url: Optional[str] = None
    display_price: Optional[float] = None
    in_stock: bool = False


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int


# Schema for partial product updates from the admin edit screen
class ProductEditRequest(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    gender: Optional[Gender] = None
    perfume_type: Optional[PerfumeType] = None
    description_text: Optional[str] = None
    variants: Optional[List[ProductVariant]] = Field(default=None, min_length=1)
    main_accords: Optional[List[MainAccord]] = None


# Admin list row with a computed stock badge
class AdminProductOut(ProductRecord):
    stock_status: Literal["in-stock", "partial", "out-of-stock", "no-variants"]
    created_at: Optional[datetime] = None


class AdminProductPage(BaseModel):
    items: List[AdminProductOut]
    total: int
    page: int
    page_size: int
