# backend/models/users.py
from sqlalchemy import Column, Integer, String
from database import Base

# Represents an admin account allowed to sign in to the admin panel
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    display_name = Column(String, nullable=True)
