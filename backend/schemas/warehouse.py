# backend/schemas/warehouse.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


class WarehouseCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64, description="Slug, e.g. gudang-utama")
    name: str = Field(min_length=1)
    address: Optional[str] = None


class WarehouseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


class WarehouseOut(BaseModel):
    id: int
    code: str
    name: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# One product line in a warehouse stock listing
class WarehouseStockItem(BaseModel):
    product_id: int
    product_name: str
    unit: str
    quantity: int


class WarehouseStockPage(BaseModel):
    warehouse: WarehouseOut
    items: List[WarehouseStockItem]
    total_quantity: int
