# market/dev_backend/routers/payments.py
import re
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user, remember, replay, require_role
from market.dev_backend.fulfilment import checkout_items, fulfil_transaction, line_total
from market.dev_backend.models import PaymentTransactionModel, UserModel
from market.dev_backend.schemas import CheckoutIn, MpesaCallbackIn, WithdrawIn
from market.dev_backend.serializers import money, transaction_out
from market.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["payments"])

PHONE_RE = re.compile(r"^(07\d{8}|254\d{9}|\+254\d{9})$")
MAX_STK_AMOUNT = Decimal("70000")


def _own_transaction(db: Session, transaction_id: str, user: UserModel) -> PaymentTransactionModel:
    tx = db.execute(
        select(PaymentTransactionModel).where(
            PaymentTransactionModel.checkout_request_id == transaction_id
        )
    ).scalar_one_or_none()
    if not tx or tx.user_id != user.id:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return tx


@router.post("/checkout")
def checkout(
    payload: CheckoutIn,
    idempotency_key: str | None = Header(None),
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Customer")

    previous = replay(db, user.id, idempotency_key)
    if previous is not None:
        logger.info(f"Checkout replay for key {idempotency_key}")
        return previous

    if not PHONE_RE.match(payload.mpesa_number):
        raise HTTPException(status_code=400, detail="Invalid M-Pesa phone number")

    items = checkout_items(db, user.id, payload.selected_items)
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    if payload.selected_items and len(items) != len(set(payload.selected_items)):
        raise HTTPException(status_code=400, detail="Some selected items are not in your cart")

    total = sum((line_total(i.product.price, i.quantity) for i in items), Decimal("0.00"))
    if total != Decimal(payload.total_amount).quantize(Decimal("0.01")):
        raise HTTPException(status_code=400, detail=f"Amount mismatch: cart total is {total}")
    if total > MAX_STK_AMOUNT:
        raise HTTPException(status_code=400, detail="Amount exceeds the M-Pesa transaction limit")

    tx = PaymentTransactionModel(
        user_id=user.id,
        checkout_request_id=f"ws_CO_{uuid.uuid4().hex[:20]}",
        merchant_request_id=uuid.uuid4().hex[:12],
        phone_number=payload.mpesa_number,
        amount=total,
        status="initiated",
        cart_item_ids=",".join(str(i.id) for i in items),
    )
    db.add(tx)

    response = {
        "transaction_id": tx.checkout_request_id,
        "status": "pending",
        "message": "Success. Request accepted for processing",
    }
    remember(db, user.id, idempotency_key, response)
    db.commit()

    logger.info(f"STK push {tx.checkout_request_id} for KSh {total} to {payload.mpesa_number}")
    return response


@router.post("/payments/callback")
def mpesa_callback(payload: MpesaCallbackIn, db: Session = Depends(get_db)):
    tx = db.execute(
        select(PaymentTransactionModel).where(
            PaymentTransactionModel.checkout_request_id == payload.transaction_id
        )
    ).scalar_one_or_none()
    if not tx:
        raise HTTPException(status_code=404, detail="Transaction not found")

    if tx.status == "initiated":
        if payload.result_code == 0:
            tx.status = "completed"
            tx.mpesa_receipt_number = payload.mpesa_receipt_number or uuid.uuid4().hex[:10].upper()
            fulfil_transaction(db, tx)
        else:
            tx.status = "cancelled" if payload.result_code == 1032 else "failed"
        db.commit()
        logger.info(f"Callback for {tx.checkout_request_id}: {tx.status}")

    return {"ResultCode": 0, "ResultDesc": "Accepted"}


@router.get("/payments/transactions/{transaction_id}")
def get_transaction(
    transaction_id: str,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    return transaction_out(_own_transaction(db, transaction_id, user))


@router.get("/payments/history")
def payment_history(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        select(PaymentTransactionModel)
        .where(PaymentTransactionModel.user_id == user.id)
        .order_by(PaymentTransactionModel.id.desc())
    ).scalars()
    return [transaction_out(t) for t in rows]


@router.post("/payments/process-completed")
def process_completed(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        select(PaymentTransactionModel).where(
            PaymentTransactionModel.user_id == user.id,
            PaymentTransactionModel.status == "completed",
            PaymentTransactionModel.processed.is_(False),
        )
    ).scalars().all()

    orders = sum(fulfil_transaction(db, tx) for tx in rows)
    db.commit()
    return {"transactions": len(rows), "orders_created": orders}


@router.get("/wallet/balance")
def wallet_balance(user: UserModel = Depends(current_user)):
    require_role(user, "Vendor")
    return {"balance": money(user.wallet_balance)}


@router.post("/wallet/withdraw")
def withdraw(
    payload: WithdrawIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    require_role(user, "Vendor")
    if not PHONE_RE.match(payload.mpesa_number):
        raise HTTPException(status_code=400, detail="Invalid M-Pesa phone number")

    balance = Decimal(user.wallet_balance)
    if payload.amount > balance:
        raise HTTPException(status_code=400, detail="Insufficient wallet balance")

    user.wallet_balance = balance - payload.amount
    db.commit()
    return {
        "success": True,
        "message": f"KSh {payload.amount} sent to {payload.mpesa_number}",
        "transaction_id": uuid.uuid4().hex[:10].upper(),
        "new_balance": money(user.wallet_balance),
    }
