# routes/reports.py
from datetime import datetime, date, timedelta
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, cast, Date, select
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import role_required
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from models.product import Product, ProductStock
from models.order import Order, OrderStatus
from schemas.reports import (
    LowStockPage, LowStockItem,
    ValuationResponse, ValuationItem,
    SalesSummaryResponse, SalesSummaryItem,
    ExpiringItem,
)

router = APIRouter(prefix="/reports", tags=["Reports"])

_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)

# Derived total stock as a correlated subquery
_stock_total = (
    select(func.coalesce(func.sum(ProductStock.quantity), 0))
    .where(ProductStock.product_id == Product.id)
    .correlate(Product)
    .scalar_subquery()
)


# -----------------------------
# 1) Low stock
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    q: Optional[str] = Query(None, description="Search by name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    query = db.query(Product).filter(Product.is_active.is_(True), _stock_total <= Product.min_stock)
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))

    total = query.count()
    rows = (query
            .order_by(_stock_total.asc(), Product.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all())

    items: List[LowStockItem] = [
        LowStockItem(product_id=p.id, name=p.name, unit=p.unit, stock=p.stock, min_stock=p.min_stock or 0)
        for p in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# -----------------------------
# 2) Inventory valuation
# -----------------------------
@router.get("/valuation", response_model=ValuationResponse)
def report_valuation(
    warehouse_id: Optional[int] = Query(None, description="Limit to one warehouse"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    items: List[ValuationItem] = []
    for p in db.query(Product).filter(Product.is_active.is_(True)).order_by(Product.name.asc()).all():
        qty = p.stock_by_warehouse.get(warehouse_id, 0) if warehouse_id is not None else p.stock
        if qty <= 0:
            continue
        cost = p.purchase_price or 0
        items.append(ValuationItem(
            product_id=p.id, name=p.name, stock=qty, purchase_price=cost, price=p.price,
            value=qty * cost, potential_profit=qty * (p.price - cost),
        ))

    return ValuationResponse(
        items=items,
        total_value=sum(i.value for i in items),
        total_potential_profit=sum(i.potential_profit for i in items),
        warehouse_id=warehouse_id,
    )


# -----------------------------
# 3) Sales summary (completed orders)
# -----------------------------
def _parse_iso(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {s}")

@router.get("/sales-summary", response_model=SalesSummaryResponse)
def report_sales_summary(
    date_from: Optional[str] = Query(None, description="ISO datetime from"),
    date_to: Optional[str] = Query(None, description="ISO datetime to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    fdt = _parse_iso(date_from)
    tdt = _parse_iso(date_to)

    day = cast(Order.created_at, Date)
    q = db.query(
        day.label("d"),
        func.count(Order.id).label("orders"),
        func.coalesce(func.sum(Order.total), 0).label("total_amount"),
    ).filter(Order.status == OrderStatus.DONE)

    if fdt:
        q = q.filter(Order.created_at >= fdt)
    if tdt:
        q = q.filter(Order.created_at <= tdt)

    rows = q.group_by(day).order_by(day.asc()).all()

    items: List[SalesSummaryItem] = [
        SalesSummaryItem(date=r.d, orders=r.orders, total_amount=int(r.total_amount))
        for r in rows
    ]
    return SalesSummaryResponse(
        items=items,
        total_orders=sum(i.orders for i in items),
        total_amount=sum(i.total_amount for i in items),
        date_from=fdt,
        date_to=tdt,
    )


# -----------------------------
# 4) Expiring products
# -----------------------------
@router.get("/expiring", response_model=List[ExpiringItem])
def report_expiring(
    days: int = Query(30, ge=0, le=365, description="Expiry within this many days"),
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    today = date.today()
    limit = today + timedelta(days=days)
    rows = (db.query(Product)
            .filter(Product.is_active.is_(True), Product.expiry_date.isnot(None), Product.expiry_date <= limit)
            .order_by(Product.expiry_date.asc())
            .all())
    return [
        ExpiringItem(product_id=p.id, name=p.name, expiry_date=p.expiry_date,
                     days_left=(p.expiry_date - today).days, stock=p.stock)
        for p in rows
    ]
