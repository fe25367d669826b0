# backend/schemas/purchase.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from models.purchase import PurchaseStatus, PurchasePaymentStatus


class PurchaseItemIn(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_cost: int = Field(gt=0, description="Harga beli per unit")


class PurchaseCreate(BaseModel):
    supplier_id: int
    items: List[PurchaseItemIn] = Field(min_length=1)
    warehouse_id: Optional[int] = None
    notes: Optional[str] = None


class PurchasePaymentPatch(BaseModel):
    payment_status: PurchasePaymentStatus


class PurchaseItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_cost: int
    line_total: int


class PurchaseOut(BaseModel):
    id: int
    supplier_id: int
    supplier_name: Optional[str] = None
    warehouse_id: int
    status: PurchaseStatus
    payment_status: PurchasePaymentStatus
    total_amount: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    items: List[PurchaseItemOut]

    model_config = ConfigDict(from_attributes=True)


class PurchasePage(BaseModel):
    items: List[PurchaseOut]
    total: int
    page: int
    page_size: int
