import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class OrderStatus(str, enum.Enum):
    WAITING = "WAITING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class OrderChannel(str, enum.Enum):
    OFFLINE = "OFFLINE"
    WEBSITE = "WEBSITE"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    QRIS = "QRIS"
    TRANSFER = "TRANSFER"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Account that placed the order
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # Cashier for POS sales

    # Buyer contact details
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    channel = Column(Enum(OrderChannel), nullable=False, default=OrderChannel.OFFLINE)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.WAITING, index=True)

    # Warehouse the goods are taken from on completion
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    stock_deducted = Column(Boolean, nullable=False, default=False)

    delivery_method = Column(String, nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)

    # Amounts in whole currency units, total = subtotal + shipping_cost
    subtotal = Column(Integer, nullable=False)
    shipping_cost = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False)
    amount_tendered = Column(Integer, nullable=True)
    change = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    customer = relationship("Customer")
    warehouse = relationship("Warehouse")

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_name = Column(String, nullable=False)
    qty = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
