# schemas/reports.py
from datetime import datetime, date
from typing import List, Optional
from pydantic import BaseModel

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    product_id: int
    name: str
    unit: str
    stock: int
    min_stock: int

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int

# Stock value at average purchase cost
class ValuationItem(BaseModel):
    product_id: int
    name: str
    stock: int
    purchase_price: int
    price: int
    value: int
    potential_profit: int

class ValuationResponse(BaseModel):
    items: List[ValuationItem]
    total_value: int
    total_potential_profit: int
    warehouse_id: Optional[int] = None

# Schemas for sales performance summaries
class SalesSummaryItem(BaseModel):
    date: date
    orders: int
    total_amount: int

class SalesSummaryResponse(BaseModel):
    items: List[SalesSummaryItem]
    total_orders: int
    total_amount: int
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

# Products approaching their expiry date
class ExpiringItem(BaseModel):
    product_id: int
    name: str
    expiry_date: date
    days_left: int
    stock: int
