# backend/routes/warehouse.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from exceptions import ConflictError
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from models.warehouse import Warehouse
from models.product import ProductStock
from models.stock import StockLog
from models.purchase import Purchase, PurchaseStatus
from models.order import Order, OrderStatus
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from schemas.warehouse import (
    WarehouseCreate, WarehouseUpdate, WarehouseOut, WarehouseStockPage, WarehouseStockItem
)

router = APIRouter(prefix="/warehouses", tags=["Warehouse"])

_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)
_admin = role_required(ROLE_ADMIN)


def _get(db: Session, warehouse_id: int) -> Warehouse:
    wh = db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
    if not wh:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    return wh


@router.get("", response_model=List[WarehouseOut])
def list_warehouses(db: Session = Depends(get_db), current_user: User = Depends(_staff)):
    return db.query(Warehouse).order_by(Warehouse.id.asc()).all()


@router.get("/{warehouse_id}", response_model=WarehouseOut)
def get_warehouse(warehouse_id: int, db: Session = Depends(get_db), current_user: User = Depends(_staff)):
    return _get(db, warehouse_id)


# Everything held in one warehouse
@router.get("/{warehouse_id}/stock", response_model=WarehouseStockPage)
def warehouse_stock(warehouse_id: int, db: Session = Depends(get_db), current_user: User = Depends(_staff)):
    wh = _get(db, warehouse_id)
    rows = (db.query(ProductStock)
            .filter(ProductStock.warehouse_id == wh.id, ProductStock.quantity > 0)
            .all())
    items = [
        WarehouseStockItem(product_id=r.product_id, product_name=r.product.name,
                           unit=r.product.unit, quantity=r.quantity)
        for r in sorted(rows, key=lambda r: r.product.name.lower())
    ]
    return WarehouseStockPage(
        warehouse=WarehouseOut.model_validate(wh),
        items=items,
        total_quantity=sum(i.quantity for i in items),
    )


@router.post("", response_model=WarehouseOut, status_code=201)
def create_warehouse(
    payload: WarehouseCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    code = payload.code.strip().lower()
    if db.query(Warehouse).filter(Warehouse.code == code).first():
        raise ConflictError("Warehouse code already exists", code=code)

    wh = Warehouse(code=code, name=payload.name, address=payload.address)
    db.add(wh)
    db.commit()
    db.refresh(wh)

    write_log(db, user_id=current_user.id, action="WAREHOUSE_CREATE", resource="warehouses",
              status="SUCCESS", ip=client_ip(request), meta={"id": wh.id, "code": wh.code})
    return wh


@router.patch("/{warehouse_id}", response_model=WarehouseOut)
def update_warehouse(
    warehouse_id: int, payload: WarehouseUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    wh = _get(db, warehouse_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(wh, key, value)
    db.commit()
    db.refresh(wh)

    write_log(db, user_id=current_user.id, action="WAREHOUSE_UPDATE", resource="warehouses",
              status="SUCCESS", ip=client_ip(request), meta={"id": wh.id})
    return wh


@router.delete("/{warehouse_id}")
def delete_warehouse(
    warehouse_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    wh = _get(db, warehouse_id)
    if wh.code == settings.DEFAULT_WAREHOUSE_CODE:
        raise ConflictError("The default warehouse cannot be deleted", warehouse_id=wh.id)
    held = sum(r.quantity for r in wh.stocks)
    if held > 0:
        raise ConflictError("Warehouse still holds stock; transfer it first", warehouse_id=wh.id, stock=held)
    if db.query(StockLog.id).filter(StockLog.warehouse_id == wh.id).first():
        raise ConflictError("Warehouse has stock history and cannot be deleted", warehouse_id=wh.id)
    open_purchase = db.query(Purchase.id).filter(
        Purchase.warehouse_id == wh.id, Purchase.status == PurchaseStatus.PENDING).first()
    open_order = db.query(Order.id).filter(
        Order.warehouse_id == wh.id, Order.status.notin_([OrderStatus.DONE, OrderStatus.CANCELLED])).first()
    if open_purchase or open_order:
        raise ConflictError("Warehouse is used by pending purchases or open orders", warehouse_id=wh.id)
    # Closed purchases and orders keep pointing at the warehouse
    if (db.query(Purchase.id).filter(Purchase.warehouse_id == wh.id).first()
            or db.query(Order.id).filter(Order.warehouse_id == wh.id).first()):
        raise ConflictError("Warehouse has purchase or order history and cannot be deleted", warehouse_id=wh.id)

    code = wh.code
    for row in list(wh.stocks):
        db.delete(row)
    db.delete(wh)
    db.commit()

    write_log(db, user_id=current_user.id, action="WAREHOUSE_DELETE", resource="warehouses",
              status="SUCCESS", ip=client_ip(request), meta={"id": warehouse_id, "code": code})
    return {"detail": f"Warehouse '{code}' deleted"}
