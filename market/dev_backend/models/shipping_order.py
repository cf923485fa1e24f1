from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from market.dev_backend.database import Base


def _now():
    return datetime.now(timezone.utc)


class ShippingOrderModel(Base):
    __tablename__ = "shipping_orders"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("payment_transactions.id"), nullable=True)

    quantity = Column(Integer, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    shipping_status = Column(String, nullable=False, default="pending")  # pending, shipped, delivered, cancelled
    tracking_number = Column(String, nullable=True)
    shipping_address = Column(String, nullable=True)

    customer_verified = Column(Boolean, nullable=False, default=False)
    payment_released = Column(Boolean, nullable=False, default=False)
    verification_requested_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    product = relationship("ProductModel")
    customer = relationship("UserModel", foreign_keys=[customer_id])
    vendor = relationship("UserModel", foreign_keys=[vendor_id])


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    product = relationship("ProductModel")
    customer = relationship("UserModel", foreign_keys=[customer_id])

    __table_args__ = (UniqueConstraint("customer_id", "product_id", name="u_review_customer_product"),)


class VendorReportModel(Base):
    __tablename__ = "vendor_reports"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    report_type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
