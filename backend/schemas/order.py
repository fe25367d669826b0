from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, OrderChannel, PaymentMethod
from utils.pricing import PICKUP


class OrderLineIn(BaseModel):
    product_id: int
    qty: int = Field(gt=0)


# Counter sale entered by a cashier
class PosOrderCreate(BaseModel):
    items: List[OrderLineIn] = Field(min_length=1)
    delivery_method: str = PICKUP
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_tendered: Optional[int] = Field(default=None, ge=0)
    warehouse_id: Optional[int] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None


# Checkout of the current user's cart
class CheckoutPayload(BaseModel):
    delivery_method: str = PICKUP
    payment_method: PaymentMethod = PaymentMethod.TRANSFER
    amount_tendered: Optional[int] = Field(default=None, ge=0)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None


# Price check without writing anything
class QuoteRequest(BaseModel):
    items: List[OrderLineIn] = Field(min_length=1)
    delivery_method: str = PICKUP
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_tendered: Optional[int] = Field(default=None, ge=0)


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    qty: int
    unit_price: int
    line_total: int


class QuoteResponse(BaseModel):
    items: List[OrderItemOut]
    subtotal: int
    shipping_cost: int
    total: int
    change: Optional[int] = None


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    status: OrderStatus
    channel: OrderChannel
    customer_id: Optional[int] = None
    customer_name: str
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    warehouse_id: int
    delivery_method: str
    payment_method: PaymentMethod
    subtotal: int
    shipping_cost: int
    total: int
    amount_tendered: Optional[int] = None
    change: Optional[int] = None
    stock_deducted: bool
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]

# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int

# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
