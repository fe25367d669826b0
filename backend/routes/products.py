# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, BackgroundTasks
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import ColumnElement

from database import get_db
from exceptions import ConflictError, NotFoundError
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log, client_ip
from utils.notifier import notifier, low_stock_alerts
from models.users import User, ROLE_ADMIN, ROLE_CASHIER
from models.product import Product
from models.stock import StockLog, StockReason
from models.order import OrderItem
from models.purchase import Purchase, PurchaseItem, PurchaseStatus
from models.cart import CartItem
from models.warehouse import Warehouse
from services import stock_ledger
import schemas.product as product_schemas

router = APIRouter(tags=["Products"])

_staff = role_required(ROLE_ADMIN, ROLE_CASHIER)
_admin = role_required(ROLE_ADMIN)


# ---- HELPERS ----
def _norm_barcode(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    c = code.strip()
    return c if c else None

def _get_unique_values(db: Session, column: ColumnElement) -> List[str]:
    values = db.query(column).distinct().filter(column != None, column != "").all()
    return [v[0] for v in values]

def _get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _detail(product: Product) -> product_schemas.ProductDetail:
    per_wh = [
        product_schemas.WarehouseStockOut(
            warehouse_id=s.warehouse_id,
            warehouse_code=s.warehouse.code,
            warehouse_name=s.warehouse.name,
            quantity=s.quantity,
        )
        for s in sorted(product.stocks, key=lambda s: s.warehouse_id)
    ]
    base = product_schemas.ProductOut.model_validate(product).model_dump()
    return product_schemas.ProductDetail(**base, stock_by_warehouse=per_wh)


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name or barcode"),
    category: Optional[str] = Query(None),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    sort_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product)

    # Customers only see what is on sale
    if not include_archived or current_user.role not in (ROLE_ADMIN, ROLE_CASHIER):
        query = query.filter(Product.is_active.is_(True))
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.barcode.ilike(like)))
    if category:
        query = query.filter(Product.category.ilike(f"%{category}%"))

    allowed = {
        "id": Product.id, "name": Product.name, "price": Product.price,
        "category": Product.category, "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by.lower(), Product.name)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/products/unique/categories", response_model=List[str])
def get_product_categories(db: Session = Depends(get_db)):
    return _get_unique_values(db, Product.category)


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductDetail)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _detail(_get_product(db, product_id))


# =========================
# CREATE PRODUCT
# =========================
@router.post("/products", response_model=product_schemas.ProductDetail, status_code=201)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    barcode = _norm_barcode(payload.barcode)
    if barcode and db.query(Product).filter(Product.barcode == barcode).first():
        raise ConflictError("Barcode already exists", barcode=barcode)

    data = payload.model_dump(exclude={"initial_stock", "warehouse_id", "barcode"})
    product = Product(**data, barcode=barcode)
    db.add(product)
    db.flush()

    # Opening stock is booked like any other stock-in so the log explains it
    if payload.initial_stock > 0:
        warehouse = stock_ledger.resolve_warehouse(db, payload.warehouse_id)
        stock_ledger.set_quantity(db, product, warehouse, payload.initial_stock, user=current_user,
                                  reason=StockReason.STOCK_IN, note="Opening stock")

    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "stock": product.stock},
    )
    return _detail(product)


# =========================
# PARTIAL UPDATE (PATCH)
# =========================
@router.patch("/products/{product_id}", response_model=product_schemas.ProductDetail)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    p = _get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "barcode" in changes:
        changes["barcode"] = _norm_barcode(changes["barcode"])
        if changes["barcode"]:
            conflict = db.query(Product).filter(Product.barcode == changes["barcode"], Product.id != p.id).first()
            if conflict:
                raise ConflictError("Barcode already exists", barcode=changes["barcode"])

    for key, value in changes.items():
        setattr(p, key, value)

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": p.id, "fields": sorted(changes)},
    )
    return _detail(p)


# =========================
# PER-WAREHOUSE STOCK MAP
# =========================
@router.get("/products/{product_id}/stock", response_model=dict)
def get_stock_map(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_staff),
):
    product = _get_product(db, product_id)
    return {"product_id": product.id, "stock": product.stock, "stock_by_warehouse": product.stock_by_warehouse}


@router.put("/products/{product_id}/stock", response_model=product_schemas.ProductDetail)
def replace_stock_map(
    product_id: int,
    payload: product_schemas.StockMapUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    product = stock_ledger.lock_product(db, product_id)

    quantities = {}
    for warehouse_id, qty in payload.quantities.items():
        warehouse = db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
        if not warehouse:
            raise NotFoundError("Warehouse not found", warehouse_id=warehouse_id)
        quantities[warehouse] = qty

    before = product.stock
    stock_ledger.replace_stock_map(db, product, quantities, user=current_user, note=payload.note)
    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="STOCK_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"product_id": product.id, "before": before, "after": product.stock},
    )
    background_tasks.add_task(notifier.send_low_stock, low_stock_alerts([product]))
    return _detail(product)


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int, request: Request, db: Session = Depends(get_db), current_user: User = Depends(_admin),
):
    product = _get_product(db, product_id)
    if product.stock > 0:
        raise ConflictError("Product still has stock; archive it instead", stock=product.stock)
    # Ledger and order lines keep pointing at the product
    has_history = (
        db.query(StockLog.id).filter(StockLog.product_id == product.id).first()
        or db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first()
    )
    if has_history:
        raise ConflictError("Product has stock or order history; archive it instead", product_id=product.id)
    pending = (db.query(PurchaseItem.id).join(Purchase, PurchaseItem.purchase_id == Purchase.id)
               .filter(PurchaseItem.product_id == product.id, Purchase.status == PurchaseStatus.PENDING).first())
    if pending:
        raise ConflictError("Product is on a pending purchase; receive or cancel it first", product_id=product.id)
    if db.query(PurchaseItem.id).filter(PurchaseItem.product_id == product.id).first():
        raise ConflictError("Product has purchase history; archive it instead", product_id=product.id)
    # Lines in open carts go with the product
    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    pid, pname = product.id, product.name
    db.delete(product)
    db.commit()
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": pid})
    return {"detail": f"Product '{pname}' deleted"}
