# market/dev_backend/schemas.py
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class SignupIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    role: str = Field("Customer", pattern="^(Customer|Vendor)$")
    location: str | None = None


class LoginIn(BaseModel):
    username: str
    password: str


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    description: str | None = None
    image: str | None = None
    quantity: int = Field(..., ge=0)
    location: str | None = None


class CartItemIn(BaseModel):
    product_id: int = Field(..., gt=0, description="Product ID (> 0)")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class CartQuantityIn(BaseModel):
    quantity: int = Field(..., gt=0, description="New quantity (> 0)")


class CheckoutIn(BaseModel):
    mpesa_number: str
    total_amount: Decimal = Field(..., gt=0)
    selected_items: List[int] | None = None


class MpesaCallbackIn(BaseModel):
    """Stand-in for the Daraja STK callback body."""

    transaction_id: str
    result_code: int = 0
    result_desc: str | None = None
    mpesa_receipt_number: str | None = None


class ShippingStatusIn(BaseModel):
    shipping_status: str = Field(..., pattern="^(pending|shipped|delivered|cancelled)$")
    tracking_number: str | None = None


class VerifyDeliveryIn(BaseModel):
    verified: bool


class ReviewIn(BaseModel):
    product_id: int = Field(..., gt=0)
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None


class VendorReportIn(BaseModel):
    vendor_id: int
    product_id: int | None = None
    report_type: str = Field(..., pattern="^(non_delivery|wrong_product|damaged_product|other)$")
    description: str = Field(..., min_length=1)


class WithdrawIn(BaseModel):
    amount: Decimal = Field(..., gt=0)
    mpesa_number: str


class MessageIn(BaseModel):
    receiver_id: int
    content: str = Field(..., min_length=1)


class FollowIn(BaseModel):
    vendor_id: int


class ProfileIn(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, min_length=3)
