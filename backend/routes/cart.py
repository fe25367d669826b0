# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from database import get_db
from exceptions import InsufficientStockError
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils.pricing import unit_price_for
from models.users import User
from models.product import Product
from models.cart import Cart, CartItem
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut

router = APIRouter(prefix="/cart", tags=["Cart"])


def _open_cart(db: Session, user_id: int) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user_id, Cart.status == "open").first()
    if cart is None:
        cart = Cart(user_id=user_id, status="open")
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _cart_item(db: Session, cart: Cart, item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if item is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


def _set_qty(item: CartItem, product: Product, qty: int):
    # Early feedback only; availability is checked again at checkout
    if qty > product.stock:
        raise InsufficientStockError(
            f"Insufficient stock of '{product.name}' (available {product.stock})",
            product_id=product.id, available=product.stock, requested=qty,
        )
    item.qty = qty
    # Price tier follows the quantity now in the cart
    item.unit_price_snapshot = unit_price_for(product, qty)


def _cart_to_out(cart: Cart) -> CartOut:
    lines = [
        CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=it.product.name,
            unit=it.product.unit,
            qty=it.qty,
            unit_price=it.unit_price_snapshot,
            line_total=it.unit_price_snapshot * it.qty,
        )
        for it in cart.items
    ]
    return CartOut(id=cart.id, items=lines, total=sum(line.line_total for line in lines))


def _saved(db: Session, cart: Cart, request: Request, user: User, action: str, **meta) -> CartOut:
    db.commit()
    db.refresh(cart)
    out = _cart_to_out(cart)
    write_log(db, user_id=user.id, action=action, resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={**meta, "cart_items": len(out.items), "total": out.total})
    return out


@router.get("", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _cart_to_out(_open_cart(db, current_user.id))


@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _open_cart(db, current_user.id)
    product = db.query(Product).filter(Product.id == payload.product_id, Product.is_active.is_(True)).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    item = db.query(CartItem).filter(CartItem.cart_id == cart.id, CartItem.product_id == product.id).first()
    if item is None:
        item = CartItem(cart_id=cart.id, product_id=product.id, qty=0)
    _set_qty(item, product, item.qty + payload.qty)
    db.add(item)

    return _saved(db, cart, request, current_user, "CART_ADD", product_id=product.id, qty=payload.qty)


@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _open_cart(db, current_user.id)
    item = _cart_item(db, cart, item_id)
    _set_qty(item, item.product, payload.qty)
    return _saved(db, cart, request, current_user, "CART_UPDATE", item_id=item_id, qty=payload.qty)


@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _open_cart(db, current_user.id)
    db.delete(_cart_item(db, cart, item_id))
    return _saved(db, cart, request, current_user, "CART_DELETE", item_id=item_id)
