# backend/services/orders.py
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from exceptions import DomainError, InsufficientStockError, InvalidStatusTransitionError, NotFoundError
from models.cart import Cart
from models.customer import Customer
from models.order import Order, OrderItem, OrderStatus, OrderChannel, PaymentMethod
from models.product import Product
from models.stock import StockReason
from models.users import User
from models.warehouse import Warehouse
from services import stock_ledger
from utils.pricing import OrderTotals, compute_change, compute_totals, unit_price_for

logger = logging.getLogger(__name__)

# Forward path of an order; CANCELLED is reachable from anything before DONE
STATUS_FLOW = [OrderStatus.WAITING, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DONE]
TERMINAL = {OrderStatus.DONE, OrderStatus.CANCELLED}


@dataclass
class PricedLine:
    product: Product
    qty: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.qty


@dataclass
class Quote:
    lines: List[PricedLine]
    totals: OrderTotals
    change: Optional[int]


def can_transition(old: OrderStatus, new: OrderStatus) -> bool:
    if old in TERMINAL or old == new:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(old)


def price_lines(db: Session, items) -> List[PricedLine]:
    """Resolve (product_id, qty) requests to priced lines, merging repeated products."""
    merged = OrderedDict()
    for item in items:
        if item.qty <= 0:
            raise DomainError("Quantity must be greater than 0", product_id=item.product_id)
        merged[item.product_id] = merged.get(item.product_id, 0) + item.qty
    if not merged:
        raise DomainError("Order has no items")

    lines = []
    for product_id, qty in merged.items():
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found", product_id=product_id)
        if not product.is_active:
            raise DomainError(f"Product '{product.name}' is not for sale", product_id=product_id)
        lines.append(PricedLine(product=product, qty=qty, unit_price=unit_price_for(product, qty)))
    return lines


def quote(lines: List[PricedLine], delivery_method: str, payment_method: PaymentMethod,
          amount_tendered: Optional[int] = None) -> Quote:
    totals = compute_totals(((l.unit_price, l.qty) for l in lines), delivery_method)
    change = None
    if payment_method == PaymentMethod.CASH and amount_tendered is not None:
        change = compute_change(totals.total, amount_tendered)
    return Quote(lines=lines, totals=totals, change=change)


def _check_availability(lines: List[PricedLine], warehouse: Warehouse) -> None:
    for line in lines:
        available = line.product.stock_by_warehouse.get(warehouse.id, 0)
        if available < line.qty:
            raise InsufficientStockError(
                f"Insufficient stock of '{line.product.name}' in {warehouse.name} (available {available})",
                product_id=line.product.id, warehouse_id=warehouse.id,
                available=available, requested=line.qty,
            )


def _deduct_stock(db: Session, order: Order, user: Optional[User]) -> List[Product]:
    touched = []
    reference = f"order:{order.id}"
    for item in order.items:
        product = stock_ledger.lock_product(db, item.product_id)
        stock_ledger.adjust_quantity(db, product, order.warehouse, -item.qty, user=user,
                                     reason=StockReason.SALE, reference=reference,
                                     note=f"Order #{order.id}")
        touched.append(product)
    order.stock_deducted = True
    return touched


def _new_order(db: Session, *, q: Quote, warehouse: Warehouse, channel: OrderChannel,
               status: OrderStatus, delivery_method: str, payment_method: PaymentMethod,
               amount_tendered: Optional[int], customer_name: Optional[str],
               customer_phone: Optional[str], address: Optional[str],
               customer_id: Optional[int], user: Optional[User], cashier: Optional[User]) -> Order:
    customer = None
    if customer_id is not None:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Customer not found", customer_id=customer_id)

    name = customer_name or (customer.name if customer else None)
    if not name and user is not None:
        name = " ".join(filter(None, [user.first_name, user.last_name])) or user.email
    if not name:
        name = "Walk-in customer"

    order = Order(
        customer_id=customer.id if customer else None,
        user_id=user.id if user else None,
        created_by=cashier.id if cashier else None,
        customer_name=name,
        customer_phone=customer_phone or (customer.phone if customer else None),
        address=address or (customer.address if customer else None),
        channel=channel, status=status, warehouse=warehouse,
        delivery_method=delivery_method.upper(), payment_method=payment_method,
        subtotal=q.totals.subtotal, shipping_cost=q.totals.shipping_cost, total=q.totals.total,
        amount_tendered=amount_tendered if payment_method == PaymentMethod.CASH else None,
        change=q.change,
        items=[
            OrderItem(product_id=l.product.id, product_name=l.product.name, qty=l.qty, unit_price=l.unit_price)
            for l in q.lines
        ],
    )
    db.add(order)
    db.flush()
    return order


def create_pos_order(db: Session, payload, cashier: User):
    """
    Counter sale: the order is completed on the spot and stock leaves the
    warehouse immediately. Returns (order, touched_products).
    """
    warehouse = stock_ledger.resolve_warehouse(db, payload.warehouse_id)
    lines = price_lines(db, payload.items)

    if payload.payment_method == PaymentMethod.CASH and payload.amount_tendered is None:
        raise DomainError("Cash payments need the amount tendered")
    q = quote(lines, payload.delivery_method, payload.payment_method, payload.amount_tendered)
    _check_availability(lines, warehouse)

    order = _new_order(
        db, q=q, warehouse=warehouse, channel=OrderChannel.OFFLINE, status=OrderStatus.DONE,
        delivery_method=payload.delivery_method, payment_method=payload.payment_method,
        amount_tendered=payload.amount_tendered, customer_name=payload.customer_name,
        customer_phone=payload.customer_phone, address=payload.address,
        customer_id=payload.customer_id, user=None, cashier=cashier,
    )
    touched = _deduct_stock(db, order, cashier)
    logger.info("POS order %s: total=%s items=%s", order.id, order.total, len(order.items))
    return order, touched


def checkout_cart(db: Session, cart: Cart, payload, user: User) -> Order:
    """Turn the user's open cart into a WAITING order. Stock moves when the order is DONE."""
    if not cart or not cart.items:
        raise DomainError("Cart is empty")

    warehouse = stock_ledger.resolve_warehouse(db, None)
    lines = []
    for ci in cart.items:
        product = ci.product
        if not product or not product.is_active:
            raise DomainError("Cart contains a product that is no longer available", product_id=ci.product_id)
        lines.append(PricedLine(product=product, qty=ci.qty, unit_price=ci.unit_price_snapshot))

    q = quote(lines, payload.delivery_method, payload.payment_method, payload.amount_tendered)
    _check_availability(lines, warehouse)

    order = _new_order(
        db, q=q, warehouse=warehouse, channel=OrderChannel.WEBSITE, status=OrderStatus.WAITING,
        delivery_method=payload.delivery_method, payment_method=payload.payment_method,
        amount_tendered=payload.amount_tendered, customer_name=payload.customer_name,
        customer_phone=payload.customer_phone, address=payload.address,
        customer_id=None, user=user, cashier=None,
    )
    cart.status = "ordered"
    return order


def change_status(db: Session, order: Order, new_status: OrderStatus, user: Optional[User] = None):
    """Move an order along its lifecycle. Completing it deducts stock once. Returns touched products."""
    old = order.status
    if not can_transition(old, new_status):
        raise InvalidStatusTransitionError(
            f"Cannot change order status from {old.value} to {new_status.value}",
            order_id=order.id, old=old.value, new=new_status.value,
        )

    touched = []
    if new_status == OrderStatus.DONE and not order.stock_deducted:
        touched = _deduct_stock(db, order, user)
    order.status = new_status
    return touched
