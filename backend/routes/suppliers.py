# backend/routes/suppliers.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from exceptions import ConflictError
from models.users import User, ROLE_ADMIN
from models.supplier import Supplier
from models.purchase import Purchase
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from schemas.supplier import SupplierCreate, SupplierUpdate, SupplierOut, SupplierPage

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])

_admin = role_required(ROLE_ADMIN)


def _get(db: Session, supplier_id: int) -> Supplier:
    s = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return s


@router.get("", response_model=SupplierPage)
def list_suppliers(
    q: Optional[str] = Query(None, description="Search by name or phone"),
    active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    query = db.query(Supplier)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Supplier.name.ilike(like), Supplier.phone.ilike(like)))
    if active is not None:
        query = query.filter(Supplier.is_active.is_(active))

    total = query.count()
    items = query.order_by(Supplier.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(_admin)):
    return _get(db, supplier_id)


@router.post("", response_model=SupplierOut, status_code=201)
def create_supplier(
    payload: SupplierCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    s = Supplier(**payload.model_dump())
    db.add(s)
    db.commit()
    db.refresh(s)
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": s.id})
    return s


@router.patch("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: int, payload: SupplierUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    s = _get(db, supplier_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(s, key, value)
    db.commit()
    db.refresh(s)
    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": s.id})
    return s


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    s = _get(db, supplier_id)
    # Suppliers with purchases are deactivated instead
    if db.query(Purchase.id).filter(Purchase.supplier_id == s.id).first():
        raise ConflictError("Supplier has purchases; deactivate it instead", supplier_id=s.id)
    name = s.name
    db.delete(s)
    db.commit()
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": supplier_id})
    return {"detail": f"Supplier '{name}' deleted"}
