"""
Shared fixtures: one in-memory SQLite database rebuilt for every test,
staff/customer accounts with bearer tokens, and a product factory.
"""
import os

# Must be set before config.settings is created
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("STOCK_WEBHOOK_URL", None)

import pytest
from fastapi.testclient import TestClient

from config import settings
from database import Base, SessionLocal, engine, ensure_default_warehouse
from main import app
from models.product import Product
from models.users import User, ROLE_ADMIN, ROLE_CASHIER, ROLE_CUSTOMER
from models.warehouse import Warehouse
from services import stock_ledger
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "rahasia123"


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    ensure_default_warehouse()
    monkeypatch.setattr(settings, "DOCUMENTS_DIR", str(tmp_path / "grn"))
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, email, role):
    user = User(email=email, password_hash=get_password_hash(PASSWORD), role=role,
                first_name=role.title(), last_name="Test")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@toko.test", ROLE_ADMIN)


@pytest.fixture
def cashier(db):
    return _make_user(db, "kasir@toko.test", ROLE_CASHIER)


@pytest.fixture
def customer(db):
    return _make_user(db, "pembeli@toko.test", ROLE_CUSTOMER)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def cashier_headers(cashier):
    return _headers(cashier)


@pytest.fixture
def customer_headers(customer):
    return _headers(customer)


@pytest.fixture
def main_warehouse(db):
    return db.query(Warehouse).filter(Warehouse.code == settings.DEFAULT_WAREHOUSE_CODE).one()


@pytest.fixture
def branch_warehouse(db):
    wh = Warehouse(code="toko-depan", name="Toko Depan")
    db.add(wh)
    db.commit()
    db.refresh(wh)
    return wh


@pytest.fixture
def make_product(db, main_warehouse):
    """Create a product, optionally restocked into the default warehouse at ``cost``."""
    def _make(name="Gula Pasir 1kg", price=10000, stock=0, cost=8000, **kw):
        kw.setdefault("min_stock", 0)
        product = Product(name=name, price=price, purchase_price=0, is_active=True, **kw)
        db.add(product)
        db.flush()
        if stock:
            stock_ledger.restock(db, product, main_warehouse, stock, cost)
        db.commit()
        db.refresh(product)
        return product
    return _make
