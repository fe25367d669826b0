# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey,
    CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Quantity of one product held in one warehouse.
# A missing row means the warehouse holds none of the product.
class ProductStock(Base):
    __tablename__ = "product_stocks"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    product = relationship("Product", back_populates="stocks")
    warehouse = relationship("Warehouse", back_populates="stocks")

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_productstock_product_warehouse"),
    )


# Model Product
# Catalogue entry with retail/wholesale prices and the moving average purchase cost.
# Total stock is not a column: it is always the sum of the per-warehouse rows.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=False, default="pcs")
    category = Column(String, nullable=True, index=True)
    description = Column(String, nullable=True)
    barcode = Column(String, unique=True, nullable=True, index=True)
    image_url = Column(String, nullable=True)

    # Prices in whole currency units
    price = Column(Integer, CheckConstraint("price >= 0"), nullable=False)
    wholesale_price = Column(Integer, CheckConstraint("wholesale_price >= 0"), nullable=True)
    min_wholesale_qty = Column(Integer, nullable=False, default=1)

    # Weighted average cost per unit, recalculated on each restock
    purchase_price = Column(Integer, CheckConstraint("purchase_price >= 0"), nullable=False, default=0)

    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    stocks = relationship("ProductStock", back_populates="product", cascade="all, delete-orphan")

    @property
    def stock(self) -> int:
        return sum(s.quantity for s in self.stocks)

    @property
    def stock_by_warehouse(self) -> dict:
        return {s.warehouse_id: s.quantity for s in self.stocks}
