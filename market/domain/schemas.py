# market/domain/schemas.py
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Two-decimal half-up rounding, the same rule the backend applies."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Role(str, Enum):
    CUSTOMER = "Customer"
    VENDOR = "Vendor"
    ADMIN = "Admin"


class User(BaseModel):
    id: int
    username: str
    email: str | None = None
    role: Role = Role.CUSTOMER
    verified: bool = False
    banned: bool = False
    location: str | None = None

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: str
    user: User


class Product(BaseModel):
    """Product as the catalog and cart endpoints return it."""

    id: int
    name: str
    price: Decimal
    category: str | None = None
    description: str | None = None
    image: str | None = None
    quantity_available: int = Field(
        0, validation_alias=AliasChoices("quantity_available", "quantity")
    )
    vendor_id: int
    location: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def in_stock(self) -> bool:
        return self.quantity_available > 0


class ProductIn(BaseModel):
    """Payload for a vendor creating or editing a product."""

    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    description: str | None = None
    quantity: int = Field(..., ge=0)
    location: str | None = None


class CartItem(BaseModel):
    id: int
    product_id: int
    quantity: int
    product: Product

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_wire(cls, value: str) -> "PaymentStatus":
        value = (value or "").lower()
        if value in ("completed", "success", "successful"):
            return cls.COMPLETED
        if value in ("failed", "cancelled", "canceled"):
            return cls.FAILED
        return cls.PENDING

    @property
    def terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class CheckoutReceipt(BaseModel):
    """Pending receipt shown while the payer confirms on their phone."""

    transaction_id: str
    status: PaymentStatus
    message: str = ""
    phone_number: str
    amount: Decimal
    selected_items: List[int] | None = None
    confirmation_window: int = 60

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        if isinstance(v, PaymentStatus):
            return v
        if not isinstance(v, str):
            raise ValueError(f"unknown payment status {v!r}")
        return PaymentStatus.from_wire(v)


class PaymentTransaction(BaseModel):
    transaction_id: str = Field(
        ..., validation_alias=AliasChoices("transaction_id", "checkout_request_id")
    )
    phone_number: str
    amount: Decimal
    status: PaymentStatus
    mpesa_receipt_number: str | None = None
    created_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return v if isinstance(v, PaymentStatus) else PaymentStatus.from_wire(v)


class ShippingStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderAction(str, Enum):
    VERIFY = "verify"
    REVIEW = "review"
    REPORT = "report"


class ShippingOrder(BaseModel):
    id: int
    product_id: int
    vendor_id: int
    quantity: int
    total_amount: Decimal
    shipping_status: ShippingStatus
    customer_verified: bool = False
    payment_released: bool = False
    verification_requested_at: datetime | None = None
    tracking_number: str | None = None
    shipping_address: str | None = None
    product_name: str | None = None
    vendor_username: str | None = None
    customer_username: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def shows_verification_prompt(self) -> bool:
        return (
            self.shipping_status is ShippingStatus.DELIVERED
            and self.verification_requested_at is not None
            and not self.customer_verified
            and not self.payment_released
        )

    @property
    def available_actions(self) -> set:
        # once funds are released only a review still makes sense
        if self.payment_released:
            if self.shipping_status is ShippingStatus.DELIVERED:
                return {OrderAction.REVIEW}
            return set()

        actions = {OrderAction.REPORT}
        if self.shows_verification_prompt:
            actions.add(OrderAction.VERIFY)
        if self.shipping_status is ShippingStatus.DELIVERED:
            actions.add(OrderAction.REVIEW)
        return actions


class Review(BaseModel):
    id: int | None = None
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    product_name: str | None = None
    customer_username: str | None = None
    created_at: datetime | None = None


class Message(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    is_read: bool = False
    created_at: datetime | None = None
    sender_username: str | None = None
    receiver_username: str | None = None


class Conversation(BaseModel):
    id: int
    username: str
    last_message: str | None = None
    last_message_time: datetime | None = None
    unread_count: int = 0


class Follow(BaseModel):
    id: int
    follower_id: int
    vendor_id: int
    vendor_username: str | None = None
    created_at: datetime | None = None


class VendorProfile(BaseModel):
    """Public view of a vendor shown to shoppers."""

    id: int
    username: str
    email: str | None = None
    location: str | None = None
    profile_image: str | None = None
    verified: bool = False
    follower_count: int = 0
    total_purchases: int = 0
    product_count: int = 0


class ReportType(str, Enum):
    NON_DELIVERY = "non_delivery"
    WRONG_PRODUCT = "wrong_product"
    DAMAGED_PRODUCT = "damaged_product"
    OTHER = "other"


class VendorReport(BaseModel):
    id: int
    customer_id: int
    vendor_id: int
    product_id: int | None = None
    report_type: str
    description: str | None = None
    status: str = "pending"
    admin_notes: str | None = None
    created_at: datetime | None = None


class WithdrawResult(BaseModel):
    success: bool
    message: str = ""
    transaction_id: str | None = None
    new_balance: Decimal


class BulkRemoval(BaseModel):
    """Outcome of removing several cart lines; successes are never rolled back."""

    removed: List[int] = []
    failed: Dict[int, str] = {}

    @property
    def complete(self) -> bool:
        return not self.failed
