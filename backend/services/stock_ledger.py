# backend/services/stock_ledger.py
"""
Per-warehouse stock ledger.

Quantities live in ``product_stocks`` (one row per product and warehouse).
The product total is never stored; ``Product.stock`` sums the rows, so the
total always equals the sum of the per-warehouse quantities.

Functions here only stage changes on the session. The caller commits once
per request, so a multi-line operation either lands completely or not at all.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session, selectinload

from config import settings
from exceptions import (
    InsufficientStockError, InvalidQuantityError, InvalidTransferError, NotFoundError
)
from models.product import Product, ProductStock
from models.stock import StockLog, StockReason
from models.users import User
from models.warehouse import Warehouse
from utils.costing import CostUpdate, weighted_average_cost

logger = logging.getLogger(__name__)


def resolve_warehouse(db: Session, warehouse_id: Optional[int] = None) -> Warehouse:
    """Warehouse by id, or the configured default warehouse when no id is given."""
    if warehouse_id is None:
        wh = db.query(Warehouse).filter(Warehouse.code == settings.DEFAULT_WAREHOUSE_CODE).first()
        if not wh:
            raise NotFoundError(f"Default warehouse '{settings.DEFAULT_WAREHOUSE_CODE}' does not exist")
        return wh
    wh = db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
    if not wh:
        raise NotFoundError("Warehouse not found", warehouse_id=warehouse_id)
    return wh


def lock_product(db: Session, product_id: int) -> Product:
    """Load a product with a row lock (no-op on SQLite) for read-modify-write."""
    # Refresh anything already in the identity map, stock rows included
    product = (db.query(Product).filter(Product.id == product_id)
               .options(selectinload(Product.stocks))
               .populate_existing().with_for_update().first())
    if not product:
        raise NotFoundError("Product not found", product_id=product_id)
    return product


def total_stock(product: Product) -> int:
    return product.stock


def stock_by_warehouse(product: Product) -> Dict[int, int]:
    return product.stock_by_warehouse


def _check_quantity(value, *, allow_zero: bool, allow_negative: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError("Quantity must be a whole number", value=value)
    if not allow_negative and value < 0:
        raise InvalidQuantityError("Quantity cannot be negative", value=value)
    if not allow_zero and value == 0:
        raise InvalidQuantityError("Quantity cannot be zero", value=value)
    return value


def _stock_row(product: Product, warehouse_id: int, create: bool) -> Optional[ProductStock]:
    # Look through the loaded collection so rows added earlier in the same
    # unit of work are found before they are flushed
    for row in product.stocks:
        if row.warehouse_id == warehouse_id:
            return row
    if not create:
        return None
    row = ProductStock(warehouse_id=warehouse_id, quantity=0)
    product.stocks.append(row)
    return row


def _touch(product: Product) -> None:
    product.updated_at = datetime.now(timezone.utc)


def _append_log(db: Session, product: Product, warehouse_id: int, prev_qty: int, new_qty: int,
                reason: StockReason, user: Optional[User], note: Optional[str],
                reference: Optional[str], prev_cost: Optional[int] = None,
                new_cost: Optional[int] = None) -> StockLog:
    entry = StockLog(
        product_id=product.id, warehouse_id=warehouse_id,
        user_id=user.id if user else None,
        prev_quantity=prev_qty, new_quantity=new_qty, delta=new_qty - prev_qty,
        prev_cost=prev_cost, new_cost=new_cost,
        reason=reason, note=note, reference=reference,
    )
    db.add(entry)
    return entry


def set_quantity(db: Session, product: Product, warehouse: Warehouse, new_qty: int, *,
                 user: Optional[User] = None, reason: StockReason = StockReason.OPNAME,
                 note: Optional[str] = None, reference: Optional[str] = None) -> int:
    """Overwrite one warehouse entry (physical count). Returns the new product total."""
    _check_quantity(new_qty, allow_zero=True)

    row = _stock_row(product, warehouse.id, create=True)
    prev = row.quantity or 0
    row.quantity = new_qty
    if prev != new_qty:
        _append_log(db, product, warehouse.id, prev, new_qty, reason, user, note, reference)
        _touch(product)
        logger.info("Stock set: product=%s warehouse=%s %s -> %s (%s)",
                    product.id, warehouse.id, prev, new_qty, reason.value)
    return product.stock


def adjust_quantity(db: Session, product: Product, warehouse: Warehouse, delta: int, *,
                    user: Optional[User] = None, reason: StockReason = StockReason.STOCK_OUT,
                    note: Optional[str] = None, reference: Optional[str] = None,
                    audit: bool = True) -> int:
    """Add ``delta`` (may be negative) to one warehouse entry. Returns the new product total."""
    _check_quantity(delta, allow_zero=False, allow_negative=True)

    row = _stock_row(product, warehouse.id, create=False)
    current = row.quantity if row else 0
    new_qty = current + delta
    if new_qty < 0:
        raise InsufficientStockError(
            f"Insufficient stock of '{product.name}' in {warehouse.name} (available {current})",
            product_id=product.id, warehouse_id=warehouse.id, available=current, requested=-delta,
        )

    if row is None:
        row = _stock_row(product, warehouse.id, create=True)
    row.quantity = new_qty
    _touch(product)
    if audit:
        _append_log(db, product, warehouse.id, current, new_qty, reason, user, note, reference)
    return product.stock


def restock(db: Session, product: Product, warehouse: Warehouse, quantity: int, unit_cost: int, *,
            user: Optional[User] = None, reason: StockReason = StockReason.STOCK_IN,
            note: Optional[str] = None, reference: Optional[str] = None) -> CostUpdate:
    """
    Receive ``quantity`` units bought at ``unit_cost`` into ``warehouse``.

    The product's average cost is re-blended against its total stock across
    all warehouses. Invalid input raises before anything is staged.
    """
    update = weighted_average_cost(product.stock, product.purchase_price or 0, quantity, unit_cost)

    row = _stock_row(product, warehouse.id, create=True)
    prev_qty = row.quantity or 0
    prev_cost = product.purchase_price or 0

    row.quantity = prev_qty + quantity
    product.purchase_price = update.unit_cost
    _touch(product)

    _append_log(db, product, warehouse.id, prev_qty, row.quantity, reason, user, note, reference,
                prev_cost=prev_cost, new_cost=update.unit_cost)
    logger.info("Restock: product=%s warehouse=%s +%s @%s, avg cost %s -> %s",
                product.id, warehouse.id, quantity, unit_cost, prev_cost, update.unit_cost)
    return update


def transfer(db: Session, product: Product, source: Warehouse, target: Warehouse, quantity: int, *,
             user: Optional[User] = None, note: Optional[str] = None) -> int:
    """Move stock between warehouses; the product total does not change."""
    if source.id == target.id:
        raise InvalidTransferError("Source and target warehouse must differ", warehouse_id=source.id)
    _check_quantity(quantity, allow_zero=False)

    text = note or f"Transfer {source.name} -> {target.name}"
    adjust_quantity(db, product, source, -quantity, user=user,
                    reason=StockReason.TRANSFER_OUT, note=text, reference=f"warehouse:{target.id}")
    return adjust_quantity(db, product, target, quantity, user=user,
                           reason=StockReason.TRANSFER_IN, note=text, reference=f"warehouse:{source.id}")


def replace_stock_map(db: Session, product: Product, quantities: Dict[Warehouse, int], *,
                      user: Optional[User] = None, note: Optional[str] = None) -> int:
    """Admin edit of several warehouse entries at once. All values are checked first."""
    for qty in quantities.values():
        _check_quantity(qty, allow_zero=True)
    for warehouse, qty in quantities.items():
        set_quantity(db, product, warehouse, qty, user=user, reason=StockReason.EDIT, note=note)
    return product.stock
