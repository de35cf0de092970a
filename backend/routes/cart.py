# backend/routes/cart.py
from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from utils.http_errors import to_http
from models.users import User
from models.cart import Cart
from services import cart_service
from services.exceptions import StoreError
from schemas.cart import CartAddItem, CartOut, CartItemOut

router = APIRouter(prefix="/api/Cart", tags=["Cart"])

# Lines are priced at the current catalog price; the snapshot is taken at order time
def _cart_to_out(cart: Cart) -> CartOut:
    lines = []
    for item in cart.items:
        product = item.product
        price = float(product.price) if product else 0.0
        lines.append(CartItemOut(
            id=item.id,
            product_id=item.product_id,
            product_name=product.name if product else "",
            price=price,
            quantity=item.quantity,
            subtotal=round(price * item.quantity, 2),
        ))
    return CartOut(
        id=cart.id,
        user_id=cart.user_id,
        items=lines,
        total_amount=float(cart_service.cart_total(cart)),
    )

def _respond(db: Session, request: Request, user: User, cart: Cart, action: str, **meta) -> CartOut:
    result = _cart_to_out(cart)
    write_log(db, user_id=user.id, action=action, resource="cart", request=request,
              meta={**meta, "cart_items": len(result.items), "total": result.total_amount})
    return result

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(cart_service.get_or_create_cart(db, current_user.id))

@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.add_item(db, current_user.id, payload.product_id, payload.quantity)
    except StoreError as e:
        raise to_http(e)
    return _respond(db, request, current_user, cart, "CART_ADD",
                    product_id=payload.product_id, quantity=payload.quantity)

# Body is the bare quantity, e.g. `3`; zero or less removes the line
@router.put("/update/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: int,
    request: Request,
    quantity: int = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.update_item(db, current_user.id, product_id, quantity)
    except StoreError as e:
        raise to_http(e)
    return _respond(db, request, current_user, cart, "CART_UPDATE", product_id=product_id, quantity=quantity)

@router.delete("/remove/{product_id}", response_model=CartOut)
def remove_from_cart(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.remove_item(db, current_user.id, product_id)
    except StoreError as e:
        raise to_http(e)
    return _respond(db, request, current_user, cart, "CART_REMOVE", product_id=product_id)

@router.delete("/clear", response_model=CartOut)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.clear(db, current_user.id)
    return _respond(db, request, current_user, cart, "CART_CLEAR")
