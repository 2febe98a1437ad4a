from sqlalchemy import Column, String, JSON, DateTime, func
from database import Base


# Store-wide configuration documents, e.g. key "store" holding the delivery fee
class SettingsDocument(Base):
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
