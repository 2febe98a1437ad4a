# backend/models/cart.py
from sqlalchemy import Column, String, Text, DateTime, func
from database import Base

# Key/value entry holding one serialized cart (the session's durable storage)
class CartStorageEntry(Base):
    __tablename__ = "cart_storage" # Table name

    key = Column(String(128), primary_key=True) # Storage key, e.g. aroma-notes:cart:<session>
    value = Column(Text, nullable=False) # JSON-encoded list of cart lines
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now()) # Last write timestamp
