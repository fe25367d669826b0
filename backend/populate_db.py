import os
import sys
import logging

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.product import Product
from models.users import User, ROLE_ADMIN
from models.supplier import Supplier
from services import stock_ledger
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

# Configuration
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@atayatoko.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")

# name, unit, category, retail, wholesale, wholesale from qty, opening qty, unit cost, min stock
SAMPLE_PRODUCTS = [
    ("Beras Pandan Wangi 5kg", "sak", "Sembako", 78000, 75000, 5, 20, 70000, 5),
    ("Minyak Goreng 2L", "pcs", "Sembako", 36000, 34500, 6, 48, 32000, 12),
    ("Gula Pasir 1kg", "pcs", "Sembako", 17500, 16800, 10, 60, 15500, 10),
    ("Telur Ayam 1kg", "kg", "Sembako", 29000, None, 1, 15, 26000, 5),
    ("Kopi Kapal Api 165g", "pcs", "Minuman", 15000, 14200, 12, 36, 12800, 6),
    ("Sabun Mandi Lifebuoy", "pcs", "Kebersihan", 4500, 4000, 24, 72, 3500, 12),
]
# End Configuration


def populate_database():
    """Create the default warehouse, an admin account, a supplier and sample products."""
    init_db()
    session = SessionLocal()
    try:
        admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
        if not admin:
            admin = User(email=ADMIN_EMAIL, password_hash=get_password_hash(ADMIN_PASSWORD),
                         role=ROLE_ADMIN, first_name="Admin", last_name="Toko")
            session.add(admin)
            session.flush()
            logger.info("Created admin account %s", ADMIN_EMAIL)

        if not session.query(Supplier).first():
            session.add(Supplier(name="CV Sumber Rejeki", phone="+6281234567890", address="Pasar Induk"))

        warehouse = stock_ledger.resolve_warehouse(session)
        created = 0
        for name, unit, category, price, wholesale, min_qty, qty, cost, min_stock in SAMPLE_PRODUCTS:
            if session.query(Product).filter(Product.name == name).first():
                continue
            product = Product(name=name, unit=unit, category=category, price=price,
                              wholesale_price=wholesale, min_wholesale_qty=min_qty,
                              purchase_price=0, min_stock=min_stock, is_active=True)
            session.add(product)
            session.flush()
            # Opening stock goes through the ledger so costs and logs line up
            stock_ledger.restock(session, product, warehouse, qty, cost, user=admin, note="Opening stock")
            created += 1

        session.commit()
        logger.info("Seed finished: %s new products in %s", created, warehouse.name)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    populate_database()
