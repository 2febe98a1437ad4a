import os
import tempfile

# Configure an isolated in-memory database before the app modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="aromanotes-uploads-")
os.environ["CATALOG_SOURCE"] = "database"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.product import Product
from models.users import User
from schemas.order import CustomerDetails
from utils.auth_errors import login_throttle
from utils.hashing import get_password_hash
from utils.orders import create_order
from utils.storage import LocalBlobStorage, get_storage
from utils.tokenJWT import create_access_token

ADMIN_EMAIL = "admin@aromanotes.lk"
ADMIN_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    login_throttle.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    blob = LocalBlobStorage(str(tmp_path), "/uploads")
    app.dependency_overrides[get_storage] = lambda: blob
    return blob


@pytest.fixture
def client(storage):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(db):
    user = User(
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role="admin",
        display_name="Store Admin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_token(admin):
    return create_access_token({"sub": admin.email, "role": admin.role})


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def make_product(db):
    def _make(name, variants, **fields):
        product = Product(
            name=name,
            slug=fields.pop("slug", name.lower().replace(" ", "-")),
            variants=variants,
            main_accords=fields.pop("main_accords", []),
            **fields,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_order(db):
    def _make(total=1000.0, payment_method="cod", name="Nimal Perera", phone="0771234567", email=None,
              items=None, bank_slip_url=None):
        items = items or [{"product_id": "1:50ml", "name": "Oud Royale", "size": "50ml", "price": total,
                           "quantity": 1}]
        return create_order(
            db,
            items=items,
            subtotal=total,
            delivery_fee=0,
            total=total,
            payment_method=payment_method,
            customer=CustomerDetails(name=name, phone=phone, address="12 Galle Road", city="Colombo", email=email),
            bank_slip_url=bank_slip_url,
        )

    return _make
