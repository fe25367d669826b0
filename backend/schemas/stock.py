# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional

from models.stock import StockReason


# Restock with cost: recalculates the average purchase price
class StockInCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_cost: int = Field(gt=0)
    warehouse_id: Optional[int] = None
    note: Optional[str] = None


# Goods leaving stock outside of a sale (damaged, expired, own use)
class StockOutCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    warehouse_id: Optional[int] = None
    reason: str = "Barang Rusak"


class StockTransferCreate(BaseModel):
    product_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: int = Field(gt=0)
    note: Optional[str] = None


# Physical count (opname) for one warehouse
class StockOpnameCreate(BaseModel):
    product_id: int
    physical_quantity: int = Field(ge=0)
    warehouse_id: Optional[int] = None
    note: Optional[str] = None


class StockResult(BaseModel):
    product_id: int
    stock: int
    stock_by_warehouse: dict
    purchase_price: int


class StockLogResponse(BaseModel):
    id: int
    created_at: Optional[datetime] = None
    product_id: int
    product_name: Optional[str] = None
    warehouse_id: int
    warehouse_name: Optional[str] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    prev_quantity: int
    new_quantity: int
    delta: int
    prev_cost: Optional[int] = None
    new_cost: Optional[int] = None
    reason: StockReason
    note: Optional[str] = None
    reference: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Paginated response for stock history
class StockLogPage(BaseModel):
    items: List[StockLogResponse]
    total: int
    page: int
    page_size: int
