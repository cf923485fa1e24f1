# market/dev_backend/fulfilment.py
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.models import (
    CartItemModel,
    PaymentTransactionModel,
    ShippingOrderModel,
    UserModel,
)
from market.utils.logging import get_logger

logger = get_logger(__name__)


def line_total(price, quantity) -> Decimal:
    return (Decimal(price) * quantity).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def checkout_items(db: Session, user_id: int, item_ids=None):
    query = select(CartItemModel).where(CartItemModel.user_id == user_id)
    if item_ids:
        query = query.where(CartItemModel.id.in_(item_ids))
    return db.execute(query.order_by(CartItemModel.id)).scalars().all()


def fulfil_transaction(db: Session, tx: PaymentTransactionModel) -> int:
    """
    Turns a completed payment into shipping orders.
    Paid cart lines become one order each, stock goes down and the
    lines leave the cart. Running it twice does nothing.
    """
    if tx.status != "completed" or tx.processed:
        return 0

    ids = [int(i) for i in (tx.cart_item_ids or "").split(",") if i]
    items = checkout_items(db, tx.user_id, ids or None)
    customer = db.get(UserModel, tx.user_id)

    created = 0
    for item in items:
        product = item.product
        product.quantity = max(0, product.quantity - item.quantity)
        db.add(
            ShippingOrderModel(
                customer_id=tx.user_id,
                product_id=product.id,
                vendor_id=product.vendor_id,
                transaction_id=tx.id,
                quantity=item.quantity,
                total_amount=line_total(product.price, item.quantity),
                shipping_status="pending",
                shipping_address=customer.location if customer else None,
            )
        )
        db.delete(item)
        created += 1

    tx.processed = True
    logger.info(f"Transaction {tx.checkout_request_id}: {created} shipping orders created")
    return created
