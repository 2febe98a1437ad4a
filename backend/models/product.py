from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, func
from database import Base

# Model Product
# One perfume in the catalog. Variants (size, price, discount, stock flag, photo)
# and main accords are kept as JSON documents and decoded through
# schemas.product.ProductRecord.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    brand = Column(String, nullable=True, index=True)

    gender = Column(String(10), nullable=True)
    perfume_type = Column(String(20), nullable=True)

    cover_image_url = Column(String, nullable=True)
    description_text = Column(Text, nullable=True)

    variants = Column(JSON, nullable=False, default=list)
    main_accords = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
