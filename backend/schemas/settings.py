from pydantic import BaseModel, Field
from typing import Optional


# Schema for displaying store settings
class StoreSettingsOut(BaseModel):
    delivery_fee: float


# Schema for merge-updating store settings; unset fields stay untouched
class StoreSettingsUpdate(BaseModel):
    delivery_fee: Optional[float] = Field(default=None, ge=0)
