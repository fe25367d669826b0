# backend/schemas/product.py
from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    unit: str = "pcs"
    category: Optional[str] = None
    description: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None
    price: int = Field(ge=0, description="Harga ecer (retail)")
    wholesale_price: Optional[int] = Field(default=None, ge=0, description="Harga grosir")
    min_wholesale_qty: int = Field(default=1, ge=1)
    min_stock: int = Field(default=0, ge=0)
    expiry_date: Optional[date] = None


# Schema for creating a new product, optionally with opening stock
class ProductCreate(ProductBase):
    purchase_price: int = Field(default=0, ge=0, description="Harga modal")
    initial_stock: int = Field(default=0, ge=0)
    warehouse_id: Optional[int] = None


# Schema for partial product updates. Stock is changed only through stock endpoints.
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    wholesale_price: Optional[int] = Field(None, ge=0)
    min_wholesale_qty: Optional[int] = Field(None, ge=1)
    min_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    is_active: Optional[bool] = None


class WarehouseStockOut(BaseModel):
    warehouse_id: int
    warehouse_code: str
    warehouse_name: str
    quantity: int


# Full product representation including derived stock
class ProductOut(ProductBase):
    id: int
    purchase_price: int
    stock: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductDetail(ProductOut):
    stock_by_warehouse: List[WarehouseStockOut]


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int


# Admin stock edit: warehouse id -> quantity
class StockMapUpdate(BaseModel):
    quantities: Dict[int, int]
    note: Optional[str] = None
