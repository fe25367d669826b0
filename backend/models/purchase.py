import enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Enum, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class PurchasePaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"


# Purchase order placed with a supplier; receiving it restocks the warehouse
class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    status = Column(Enum(PurchaseStatus), nullable=False, default=PurchaseStatus.PENDING, index=True)
    payment_status = Column(Enum(PurchasePaymentStatus), nullable=False, default=PurchasePaymentStatus.UNPAID)
    total_amount = Column(Integer, nullable=False, default=0)
    notes = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    received_at = Column(DateTime(timezone=True), nullable=True)

    supplier = relationship("Supplier", back_populates="purchases")
    warehouse = relationship("Warehouse")
    items = relationship("PurchaseItem", back_populates="purchase", cascade="all, delete-orphan")


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    unit_cost = Column(Integer, CheckConstraint("unit_cost > 0"), nullable=False)

    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product")

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_cost
