# backend/routes/stock.py
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request, BackgroundTasks
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models.stock import StockLog, StockReason
from models.product import Product
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from services import stock_ledger
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.notifier import notifier, low_stock_alerts
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])

# Stock management is for staff (admin and cashier)
_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)


def _result(product: Product) -> dict:
    return {
        "product_id": product.id,
        "stock": product.stock,
        "stock_by_warehouse": product.stock_by_warehouse,
        "purchase_price": product.purchase_price or 0,
    }


def _parse_iso(s: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    if not s:
        return None
    if end_of_day and len(s) == 10:
        s += " 23:59:59"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {s}")


@router.get("/logs", response_model=stock_schemas.StockLogPage)
def list_stock_logs(
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    reason: Optional[StockReason] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    query = db.query(StockLog)

    if product_id is not None:
        query = query.filter(StockLog.product_id == product_id)
    if warehouse_id is not None:
        query = query.filter(StockLog.warehouse_id == warehouse_id)
    if reason:
        query = query.filter(StockLog.reason == reason)
    fdt = _parse_iso(date_from)
    tdt = _parse_iso(date_to, end_of_day=True)
    if fdt:
        query = query.filter(StockLog.created_at >= fdt)
    if tdt:
        query = query.filter(StockLog.created_at <= tdt)

    total = query.count()
    rows = (query.order_by(StockLog.created_at.desc(), StockLog.id.desc())
            .offset((page - 1) * page_size).limit(page_size).all())

    items = []
    for m in rows:
        item = stock_schemas.StockLogResponse.model_validate(m)
        item.product_name = m.product.name if m.product else None
        item.warehouse_name = m.warehouse.name if m.warehouse else None
        item.user_email = m.user.email if m.user else "System"
        items.append(item)

    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.post("/in", response_model=stock_schemas.StockResult)
def stock_in(
    payload: stock_schemas.StockInCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    product = stock_ledger.lock_product(db, payload.product_id)
    warehouse = stock_ledger.resolve_warehouse(db, payload.warehouse_id)

    update = stock_ledger.restock(db, product, warehouse, payload.quantity, payload.unit_cost,
                                  user=current_user, note=payload.note)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="STOCK_IN", resource="stock", status="SUCCESS",
              ip=client_ip(request),
              meta={"product_id": product.id, "qty": payload.quantity, "avg_cost": update.unit_cost})
    return _result(product)


@router.post("/out", response_model=stock_schemas.StockResult)
def stock_out(
    payload: stock_schemas.StockOutCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    product = stock_ledger.lock_product(db, payload.product_id)
    warehouse = stock_ledger.resolve_warehouse(db, payload.warehouse_id)

    stock_ledger.adjust_quantity(db, product, warehouse, -payload.quantity, user=current_user,
                                 reason=StockReason.STOCK_OUT, note=payload.reason)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="STOCK_OUT", resource="stock", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id, "qty": payload.quantity})
    background_tasks.add_task(notifier.send_low_stock, low_stock_alerts([product]))
    return _result(product)


@router.post("/transfer", response_model=stock_schemas.StockResult)
def stock_transfer(
    payload: stock_schemas.StockTransferCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    product = stock_ledger.lock_product(db, payload.product_id)
    source = stock_ledger.resolve_warehouse(db, payload.from_warehouse_id)
    target = stock_ledger.resolve_warehouse(db, payload.to_warehouse_id)

    stock_ledger.transfer(db, product, source, target, payload.quantity, user=current_user, note=payload.note)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="STOCK_TRANSFER", resource="stock", status="SUCCESS",
              ip=client_ip(request),
              meta={"product_id": product.id, "from": source.id, "to": target.id, "qty": payload.quantity})
    return _result(product)


@router.post("/opname", response_model=stock_schemas.StockResult)
def stock_opname(
    payload: stock_schemas.StockOpnameCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    product = stock_ledger.lock_product(db, payload.product_id)
    warehouse = stock_ledger.resolve_warehouse(db, payload.warehouse_id)

    before = product.stock_by_warehouse.get(warehouse.id, 0)
    stock_ledger.set_quantity(db, product, warehouse, payload.physical_quantity, user=current_user,
                              reason=StockReason.OPNAME, note=payload.note or "Stock opname")
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="STOCK_OPNAME", resource="stock", status="SUCCESS",
              ip=client_ip(request),
              meta={"product_id": product.id, "warehouse_id": warehouse.id,
                    "system": before, "physical": payload.physical_quantity})
    background_tasks.add_task(notifier.send_low_stock, low_stock_alerts([product]))
    return _result(product)
