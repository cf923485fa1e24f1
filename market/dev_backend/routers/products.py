# market/dev_backend/routers/products.py
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user, optional_user, require_role
from market.dev_backend.models import ProductModel, UserModel
from market.dev_backend.schemas import ProductIn
from market.dev_backend.serializers import product_out

router = APIRouter(prefix="/products", tags=["products"])


def _owned_product(db: Session, product_id: int, vendor: UserModel) -> ProductModel:
    product = db.get(ProductModel, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.vendor_id != vendor.id:
        raise HTTPException(status_code=403, detail="You can only manage your own products")
    return product


@router.get("")
def list_products(
    location: str | None = Query(None),
    user: UserModel | None = Depends(optional_user),
    db: Session = Depends(get_db),
):
    query = select(ProductModel)
    # vendors only ever see their own listings
    if user is not None and user.role == "Vendor":
        query = query.where(ProductModel.vendor_id == user.id)
    if location:
        query = query.where(ProductModel.location.ilike(f"%{location}%"))
    return [product_out(p) for p in db.execute(query.order_by(ProductModel.id)).scalars()]


@router.post("", status_code=201)
def create_product(
    payload: ProductIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Vendor")
    product = ProductModel(vendor_id=user.id, **payload.model_dump())
    if product.location is None:
        product.location = user.location
    db.add(product)
    db.commit()
    return product_out(product)


@router.patch("/{product_id}")
def update_product(
    product_id: int,
    payload: ProductIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Vendor")
    product = _owned_product(db, product_id, user)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    db.commit()
    return product_out(product)


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Vendor")
    db.delete(_owned_product(db, product_id, user))
    db.commit()
    return Response(status_code=204)
