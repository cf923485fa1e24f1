# market/dev_backend/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user, require_role
from market.dev_backend.models import CartItemModel, ProductModel, UserModel
from market.dev_backend.schemas import CartItemIn, CartQuantityIn
from market.dev_backend.serializers import cart_item_out

router = APIRouter(prefix="/cart", tags=["cart"])

NOT_FOUND = "Cart item not found or access denied"


def _customer(user: UserModel = Depends(current_user)) -> UserModel:
    require_role(user, "Customer")
    return user


def _own_item(db: Session, item_id: int, user: UserModel) -> CartItemModel:
    item = db.get(CartItemModel, item_id)
    if not item or item.user_id != user.id:
        raise HTTPException(status_code=400, detail=NOT_FOUND)
    return item


def _check_stock(product: ProductModel, quantity: int):
    if quantity > product.quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock: only {product.quantity} of {product.name} available",
        )


@router.get("")
def get_cart(user: UserModel = Depends(_customer), db: Session = Depends(get_db)):
    items = db.execute(
        select(CartItemModel).where(CartItemModel.user_id == user.id).order_by(CartItemModel.id)
    ).scalars()
    return [cart_item_out(i) for i in items]


@router.post("", status_code=201)
def add_to_cart(
    payload: CartItemIn,
    user: UserModel = Depends(_customer),
    db: Session = Depends(get_db),
):
    product = db.get(ProductModel, payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    existing = db.execute(
        select(CartItemModel).where(
            CartItemModel.user_id == user.id,
            CartItemModel.product_id == product.id,
        )
    ).scalar_one_or_none()

    if existing:
        _check_stock(product, existing.quantity + payload.quantity)
        existing.quantity += payload.quantity
        item = existing
    else:
        _check_stock(product, payload.quantity)
        item = CartItemModel(user_id=user.id, product_id=product.id, quantity=payload.quantity)
        db.add(item)

    db.commit()
    return cart_item_out(item)


@router.patch("/{item_id}")
def update_cart_item(
    item_id: int,
    payload: CartQuantityIn,
    user: UserModel = Depends(_customer),
    db: Session = Depends(get_db),
):
    item = _own_item(db, item_id, user)
    _check_stock(item.product, payload.quantity)
    item.quantity = payload.quantity
    db.commit()
    return cart_item_out(item)


@router.delete("/{item_id}", status_code=204)
def remove_from_cart(
    item_id: int,
    user: UserModel = Depends(_customer),
    db: Session = Depends(get_db),
):
    db.delete(_own_item(db, item_id, user))
    db.commit()
    return Response(status_code=204)
