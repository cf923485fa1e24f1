from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint

from market.dev_backend.database import Base


class PaymentTransactionModel(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    checkout_request_id = Column(String, nullable=False, unique=True)
    merchant_request_id = Column(String, nullable=False)
    mpesa_receipt_number = Column(String, nullable=True)
    phone_number = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="initiated")  # initiated, completed, failed, cancelled
    cart_item_ids = Column(String, nullable=True)  # comma separated
    processed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class IdempotencyKeyModel(Base):
    __tablename__ = "idempotency_keys"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    key = Column(String, nullable=False)
    response = Column(Text, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "key", name="u_idempotency_user_key"),)
