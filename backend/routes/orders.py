# backend/routes/orders.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Query, BackgroundTasks
from sqlalchemy.orm import Session, joinedload
import logging

from database import get_db
from exceptions import DomainError
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log, client_ip
from utils.notifier import notifier, low_stock_alerts
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from models.cart import Cart
from models.order import Order, OrderItem, OrderStatus, OrderChannel
from services import orders as order_service
from schemas.order import (
    OrderResponse, OrdersPage, OrderStatusPatch, OrderItemOut,
    PosOrderCreate, CheckoutPayload, QuoteRequest, QuoteResponse,
)

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)


def _is_staff(user: User) -> bool:
    return (user.role or "").lower() in {ROLE_ADMIN, ROLE_CASHIER}

# Retrieve the user's active open cart
def _cart_open(db: Session, user_id: int) -> Optional[Cart]:
    return db.query(Cart).filter(Cart.user_id == user_id, Cart.status == "open").first()

# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = [
        OrderItemOut(
            product_id=it.product_id,
            product_name=it.product_name,
            qty=it.qty,
            unit_price=it.unit_price,
            line_total=it.qty * it.unit_price,
        )
        for it in order.items
    ]
    return OrderResponse(
        id=order.id,
        status=order.status,
        channel=order.channel,
        customer_id=order.customer_id,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        address=order.address,
        warehouse_id=order.warehouse_id,
        delivery_method=order.delivery_method,
        payment_method=order.payment_method,
        subtotal=order.subtotal,
        shipping_cost=order.shipping_cost,
        total=order.total,
        amount_tendered=order.amount_tendered,
        change=order.change,
        stock_deducted=bool(order.stock_deducted),
        created_at=order.created_at,
        items=items,
    )

def _load(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()


# Price check for the POS screen; nothing is written
@router.post("/quote", response_model=QuoteResponse)
def quote_order(
    payload: QuoteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lines = order_service.price_lines(db, payload.items)
    q = order_service.quote(lines, payload.delivery_method, payload.payment_method, payload.amount_tendered)
    return QuoteResponse(
        items=[
            OrderItemOut(product_id=l.product.id, product_name=l.product.name, qty=l.qty,
                         unit_price=l.unit_price, line_total=l.line_total)
            for l in q.lines
        ],
        subtotal=q.totals.subtotal,
        shipping_cost=q.totals.shipping_cost,
        total=q.totals.total,
        change=q.change,
    )


# Counter sale: completed immediately, stock leaves the chosen warehouse
@router.post("/pos", response_model=OrderResponse, status_code=201)
def create_pos_order(
    payload: PosOrderCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    order, touched = order_service.create_pos_order(db, payload, current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="ORDER_POS", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "total": order.total})
    background_tasks.add_task(notifier.send_low_stock, low_stock_alerts(touched))
    return _order_to_out(_load(db, order.id))


# Turn the open cart into a WAITING order
@router.post("/checkout", response_model=OrderResponse, status_code=201)
def checkout(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _cart_open(db, current_user.id)
    if not cart or not cart.items:
        raise DomainError("Cart is empty")

    order = order_service.checkout_cart(db, cart, payload, current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "total": order.total})
    return _order_to_out(_load(db, order.id))


# Staff see every order, customers only their own
@router.get("", response_model=OrdersPage)
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    channel: Optional[OrderChannel] = Query(None),
    q: Optional[str] = Query(None, description="Search by customer name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Order).options(joinedload(Order.items))
    if not _is_staff(current_user):
        query = query.filter(Order.user_id == current_user.id)
    if status:
        query = query.filter(Order.status == status)
    if channel:
        query = query.filter(Order.channel == channel)
    if q:
        query = query.filter(Order.customer_name.ilike(f"%{q}%"))

    total = query.count()
    rows = (query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * page_size).limit(page_size).all())
    items = [_order_to_out(o) for o in rows]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    o = _load(db, order_id)
    if not o or (o.user_id != current_user.id and not _is_staff(current_user)):
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return _order_to_out(o)


# Move an order along WAITING -> PROCESSING -> SHIPPED -> DONE, or cancel it
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff)
):
    order = _load(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    old_status = order.status
    touched = order_service.change_status(db, order, payload.status, current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order.id, "old": old_status.value, "new": payload.status.value})
    if touched:
        background_tasks.add_task(notifier.send_low_stock, low_stock_alerts(touched))
    return _order_to_out(_load(db, order.id))
