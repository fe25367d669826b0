# backend/routes/customers.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from exceptions import ConflictError
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from models.customer import Customer
from models.order import Order
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut, CustomerPage

router = APIRouter(prefix="/customers", tags=["Customers"])

# Cashiers register regulars at the counter
_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)


def _get(db: Session, customer_id: int) -> Customer:
    c = db.query(Customer).filter(Customer.id == customer_id).first()
    if not c:
        raise HTTPException(status_code=404, detail="Customer not found")
    return c


@router.get("", response_model=CustomerPage)
def list_customers(
    q: Optional[str] = Query(None, description="Search by name or phone"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    query = db.query(Customer)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like)))
    total = query.count()
    items = query.order_by(Customer.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(_staff)):
    return _get(db, customer_id)


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(
    payload: CustomerCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_staff),
):
    c = Customer(**payload.model_dump())
    db.add(c)
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CUSTOMER_CREATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id})
    return c


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int, payload: CustomerUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_staff),
):
    c = _get(db, customer_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(c, key, value)
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CUSTOMER_UPDATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id})
    return c


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    c = _get(db, customer_id)
    if db.query(Order.id).filter(Order.customer_id == c.id).first():
        raise ConflictError("Customer has orders and cannot be deleted", customer_id=c.id)
    db.delete(c)
    db.commit()
    write_log(db, user_id=current_user.id, action="CUSTOMER_DELETE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": customer_id})
    return {"detail": "Customer deleted"}
