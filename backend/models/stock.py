# backend/models/stock.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, event, func
from sqlalchemy.orm import relationship
from database import Base
from exceptions import ImmutableRecordError


class StockReason(str, enum.Enum):
    STOCK_IN = "STOCK_IN"
    STOCK_OUT = "STOCK_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    OPNAME = "OPNAME"
    EDIT = "EDIT"
    PURCHASE_RECEIVED = "PURCHASE_RECEIVED"
    SALE = "SALE"


# Append-only record of a single per-warehouse quantity change
class StockLog(Base):
    __tablename__ = "stock_logs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    prev_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    delta = Column(Integer, nullable=False)

    # Average cost before/after, only filled in by restocks
    prev_cost = Column(Integer, nullable=True)
    new_cost = Column(Integer, nullable=True)

    reason = Column(Enum(StockReason), nullable=False, index=True)
    note = Column(String, nullable=True)
    reference = Column(String, nullable=True, index=True)  # e.g. "purchase:12"

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
    warehouse = relationship("Warehouse")
    user = relationship("User")


@event.listens_for(StockLog, "before_update")
def _reject_stock_log_update(mapper, connection, target):
    raise ImmutableRecordError("Stock log entries cannot be modified", id=target.id)


@event.listens_for(StockLog, "before_delete")
def _reject_stock_log_delete(mapper, connection, target):
    raise ImmutableRecordError("Stock log entries cannot be deleted", id=target.id)
