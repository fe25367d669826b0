# backend/routes/purchases.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from database import get_db
from exceptions import DomainError
from models.users import User, ROLE_ADMIN
from models.purchase import Purchase, PurchaseItem, PurchaseStatus, PurchasePaymentStatus
from services import purchasing
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.pdf import generate_grn_pdf, grn_pdf_path
from schemas.purchase import (
    PurchaseCreate, PurchaseOut, PurchasePage, PurchaseItemOut, PurchasePaymentPatch
)

router = APIRouter(prefix="/purchases", tags=["Purchases"])
logger = logging.getLogger(__name__)

_admin = role_required(ROLE_ADMIN)


def _load(db: Session, purchase_id: int) -> Purchase:
    p = (db.query(Purchase)
         .options(joinedload(Purchase.items).joinedload(PurchaseItem.product), joinedload(Purchase.supplier))
         .filter(Purchase.id == purchase_id).first())
    if not p:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return p


def _to_out(p: Purchase) -> PurchaseOut:
    return PurchaseOut(
        id=p.id,
        supplier_id=p.supplier_id,
        supplier_name=p.supplier.name if p.supplier else None,
        warehouse_id=p.warehouse_id,
        status=p.status,
        payment_status=p.payment_status,
        total_amount=p.total_amount,
        notes=p.notes,
        created_at=p.created_at,
        received_at=p.received_at,
        items=[
            PurchaseItemOut(
                id=it.id, product_id=it.product_id,
                product_name=it.product.name if it.product else None,
                quantity=it.quantity, unit_cost=it.unit_cost, line_total=it.line_total,
            )
            for it in p.items
        ],
    )


@router.get("", response_model=PurchasePage)
def list_purchases(
    status: Optional[PurchaseStatus] = Query(None),
    payment_status: Optional[PurchasePaymentStatus] = Query(None),
    supplier_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    query = db.query(Purchase).options(joinedload(Purchase.supplier))
    if status:
        query = query.filter(Purchase.status == status)
    if payment_status:
        query = query.filter(Purchase.payment_status == payment_status)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)

    total = query.count()
    rows = (query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
            .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": [_to_out(p) for p in rows], "total": total, "page": page, "page_size": page_size}


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(purchase_id: int, db: Session = Depends(get_db), current_user: User = Depends(_admin)):
    return _to_out(_load(db, purchase_id))


@router.post("", response_model=PurchaseOut, status_code=201)
def create_purchase(
    payload: PurchaseCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    purchase = purchasing.create_purchase(
        db, supplier_id=payload.supplier_id, items=payload.items,
        warehouse_id=payload.warehouse_id, notes=payload.notes, user=current_user,
    )
    db.commit()

    write_log(db, user_id=current_user.id, action="PURCHASE_CREATE", resource="purchases",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": purchase.id, "total": purchase.total_amount})
    return _to_out(_load(db, purchase.id))


# Goods arrived: restock every line and recalculate average costs in one transaction
@router.post("/{purchase_id}/receive", response_model=PurchaseOut)
def receive_purchase(
    purchase_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    purchase = _load(db, purchase_id)
    purchasing.receive_purchase(db, purchase, current_user)
    db.commit()

    write_log(db, user_id=current_user.id, action="PURCHASE_RECEIVE", resource="purchases",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": purchase.id, "lines": len(purchase.items)})
    return _to_out(_load(db, purchase.id))


@router.post("/{purchase_id}/cancel", response_model=PurchaseOut)
def cancel_purchase(
    purchase_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    purchase = _load(db, purchase_id)
    purchasing.cancel_purchase(db, purchase)
    db.commit()

    write_log(db, user_id=current_user.id, action="PURCHASE_CANCEL", resource="purchases",
              status="SUCCESS", ip=client_ip(request), meta={"id": purchase.id})
    return _to_out(_load(db, purchase.id))


@router.patch("/{purchase_id}/payment", response_model=PurchaseOut)
def update_payment_status(
    purchase_id: int, payload: PurchasePaymentPatch, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    purchase = _load(db, purchase_id)
    old = purchase.payment_status
    purchasing.set_payment_status(db, purchase, payload.payment_status)
    db.commit()

    write_log(db, user_id=current_user.id, action="PURCHASE_PAYMENT", resource="purchases",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": purchase.id, "old": old.value, "new": payload.payment_status.value})
    return _to_out(_load(db, purchase.id))


# Goods-received note, generated on first download
@router.get("/{purchase_id}/grn")
def download_grn(purchase_id: int, db: Session = Depends(get_db), current_user: User = Depends(_admin)):
    purchase = _load(db, purchase_id)
    if purchase.status != PurchaseStatus.RECEIVED:
        raise DomainError("Only received purchases have a goods-received note", purchase_id=purchase.id)

    path = grn_pdf_path(purchase.id)
    if not path.exists():
        generate_grn_pdf(purchase, path)
        logger.info("Generated goods-received note %s", path)
    return FileResponse(str(path), media_type="application/pdf", filename=path.name)
