# market/dev_backend/routers/shipping.py
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user, remember, replay, require_role
from market.dev_backend.models import (
    ProductModel,
    ReviewModel,
    ShippingOrderModel,
    UserModel,
    VendorReportModel,
)
from market.dev_backend.schemas import ReviewIn, ShippingStatusIn, VendorReportIn, VerifyDeliveryIn
from market.dev_backend.serializers import money, order_out, report_out, review_out
from market.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["shipping"])


@router.get("/shipping")
def list_orders(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    query = select(ShippingOrderModel)
    if user.role == "Vendor":
        query = query.where(ShippingOrderModel.vendor_id == user.id)
    elif user.role == "Customer":
        query = query.where(ShippingOrderModel.customer_id == user.id)
    return [order_out(o) for o in db.execute(query.order_by(ShippingOrderModel.id)).scalars()]


@router.patch("/shipping/{order_id}/status")
def update_status(
    order_id: int,
    payload: ShippingStatusIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Vendor")
    order = db.get(ShippingOrderModel, order_id)
    if not order or order.vendor_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.payment_released:
        raise HTTPException(status_code=400, detail="Order already settled")

    order.shipping_status = payload.shipping_status
    if payload.tracking_number:
        order.tracking_number = payload.tracking_number
    if payload.shipping_status == "delivered" and order.verification_requested_at is None:
        order.verification_requested_at = datetime.now(timezone.utc)
    db.commit()
    return order_out(order)


@router.post("/shipping/{order_id}/verify")
def verify_delivery(
    order_id: int,
    payload: VerifyDeliveryIn,
    idempotency_key: str | None = Header(None),
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Customer")
    order = db.get(ShippingOrderModel, order_id)
    if not order or order.customer_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")

    if replay(db, user.id, idempotency_key) is not None:
        return order_out(order)

    if payload.verified:
        if order.shipping_status != "delivered":
            raise HTTPException(status_code=400, detail="Order has not been delivered yet")
        # released funds are never released twice
        if not order.payment_released:
            order.customer_verified = True
            order.payment_released = True
            vendor = db.get(UserModel, order.vendor_id)
            vendor.wallet_balance = Decimal(vendor.wallet_balance) + Decimal(order.total_amount)
            logger.info(f"Order {order.id}: KSh {order.total_amount} released to vendor {vendor.id}")
    else:
        db.add(
            VendorReportModel(
                customer_id=user.id,
                vendor_id=order.vendor_id,
                product_id=order.product_id,
                report_type="non_delivery",
                description=f"Customer reported order {order.id} as not received",
            )
        )

    result = order_out(order)
    remember(db, user.id, idempotency_key, {"order_id": order.id})
    db.commit()
    return result


@router.get("/reviews")
def list_reviews(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    query = select(ReviewModel)
    if user.role == "Vendor":
        query = query.where(ReviewModel.vendor_id == user.id)
    else:
        query = query.where(ReviewModel.customer_id == user.id)
    return [review_out(r) for r in db.execute(query.order_by(ReviewModel.id)).scalars()]


@router.post("/reviews", status_code=201)
def create_review(
    payload: ReviewIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Customer")
    delivered = db.execute(
        select(ShippingOrderModel).where(
            ShippingOrderModel.customer_id == user.id,
            ShippingOrderModel.product_id == payload.product_id,
            ShippingOrderModel.shipping_status == "delivered",
        )
    ).scalars().first()
    if not delivered:
        raise HTTPException(status_code=400, detail="You can only review products delivered to you")

    product = db.get(ProductModel, payload.product_id)
    review = ReviewModel(
        customer_id=user.id,
        product_id=payload.product_id,
        vendor_id=product.vendor_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="You have already reviewed this product")
    return review_out(review)


@router.post("/reports", status_code=201)
def create_report(
    payload: VendorReportIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    report = VendorReportModel(customer_id=user.id, **payload.model_dump())
    db.add(report)
    db.commit()
    return report_out(report)


@router.get("/vendor/reports/count")
def vendor_report_count(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    require_role(user, "Vendor")
    count = db.execute(
        select(func.count(VendorReportModel.id)).where(VendorReportModel.vendor_id == user.id)
    ).scalar_one()
    return {"count": count}


def _summary(orders, group_key) -> dict:
    groups = {}
    for o in orders:
        name = group_key(o)
        entry = groups.setdefault(name, {"name": name, "orders": 0, "quantity": 0, "amount": Decimal("0.00")})
        entry["orders"] += 1
        entry["quantity"] += o.quantity
        entry["amount"] += Decimal(o.total_amount)

    total = sum((g["amount"] for g in groups.values()), Decimal("0.00"))
    return {
        "total_orders": len(orders),
        "total_amount": money(total),
        "breakdown": [
            {**g, "amount": money(g["amount"])}
            for g in sorted(groups.values(), key=lambda g: g["amount"], reverse=True)
        ],
    }


@router.get("/reports/vendor/sales")
def sales_report(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    require_role(user, "Vendor")
    orders = db.execute(
        select(ShippingOrderModel).where(ShippingOrderModel.vendor_id == user.id)
    ).scalars().all()
    report = _summary(orders, lambda o: o.product.name)
    report["released_amount"] = money(
        sum((Decimal(o.total_amount) for o in orders if o.payment_released), Decimal("0.00"))
    )
    return report


@router.get("/reports/customer/purchases")
def purchase_report(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    require_role(user, "Customer")
    orders = db.execute(
        select(ShippingOrderModel).where(ShippingOrderModel.customer_id == user.id)
    ).scalars().all()
    return _summary(orders, lambda o: o.vendor.username)
