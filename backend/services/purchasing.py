# backend/services/purchasing.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from exceptions import DomainError, InvalidStatusTransitionError, NotFoundError
from models.product import Product
from models.purchase import Purchase, PurchaseItem, PurchaseStatus, PurchasePaymentStatus
from models.stock import StockReason
from models.supplier import Supplier
from models.users import User
from services import stock_ledger

logger = logging.getLogger(__name__)


def create_purchase(db: Session, *, supplier_id: int, items: list, warehouse_id: Optional[int] = None,
                    notes: Optional[str] = None, user: Optional[User] = None) -> Purchase:
    """Register a pending purchase. ``items`` are objects with product_id, quantity, unit_cost."""
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found", supplier_id=supplier_id)
    if not supplier.is_active:
        raise DomainError(f"Supplier '{supplier.name}' is inactive", supplier_id=supplier_id)
    if not items:
        raise DomainError("A purchase needs at least one item")

    warehouse = stock_ledger.resolve_warehouse(db, warehouse_id)

    purchase = Purchase(
        supplier_id=supplier.id, warehouse_id=warehouse.id, notes=notes,
        status=PurchaseStatus.PENDING, payment_status=PurchasePaymentStatus.UNPAID,
        created_by=user.id if user else None,
    )
    total = 0
    for item in items:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise NotFoundError(f"Product {item.product_id} not found", product_id=item.product_id)
        if not product.is_active:
            raise DomainError(f"Product '{product.name}' is archived", product_id=product.id)
        purchase.items.append(PurchaseItem(product_id=product.id, quantity=item.quantity, unit_cost=item.unit_cost))
        total += item.quantity * item.unit_cost

    purchase.total_amount = total
    db.add(purchase)
    db.flush()
    return purchase


def receive_purchase(db: Session, purchase: Purchase, user: Optional[User] = None) -> Purchase:
    """
    Mark goods as received: every line restocks the purchase warehouse and
    re-blends the product's average cost.

    Nothing is committed here; if any line fails the caller's session is
    discarded and no product is touched.
    """
    if purchase.status != PurchaseStatus.PENDING:
        raise InvalidStatusTransitionError(
            f"Purchase is {purchase.status.value}, only PENDING purchases can be received",
            purchase_id=purchase.id, status=purchase.status.value,
        )

    warehouse = stock_ledger.resolve_warehouse(db, purchase.warehouse_id)
    reference = f"purchase:{purchase.id}"
    for item in purchase.items:
        product = stock_ledger.lock_product(db, item.product_id)
        stock_ledger.restock(
            db, product, warehouse, item.quantity, item.unit_cost,
            user=user, reason=StockReason.PURCHASE_RECEIVED, reference=reference,
            note=f"Purchase #{purchase.id}",
        )

    purchase.status = PurchaseStatus.RECEIVED
    purchase.received_at = datetime.now(timezone.utc)
    logger.info("Purchase %s received into warehouse %s (%s lines)", purchase.id, warehouse.id, len(purchase.items))
    return purchase


def cancel_purchase(db: Session, purchase: Purchase) -> Purchase:
    if purchase.status != PurchaseStatus.PENDING:
        raise InvalidStatusTransitionError(
            f"Purchase is {purchase.status.value}, only PENDING purchases can be cancelled",
            purchase_id=purchase.id, status=purchase.status.value,
        )
    purchase.status = PurchaseStatus.CANCELLED
    return purchase


def set_payment_status(db: Session, purchase: Purchase, payment_status: PurchasePaymentStatus) -> Purchase:
    if purchase.status == PurchaseStatus.CANCELLED and payment_status == PurchasePaymentStatus.PAID:
        raise InvalidStatusTransitionError("A cancelled purchase cannot be paid", purchase_id=purchase.id)
    purchase.payment_status = payment_status
    return purchase
