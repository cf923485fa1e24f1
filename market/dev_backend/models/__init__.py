# import every model so Base.metadata knows all tables before create_all

from market.dev_backend.models.user import UserModel
from market.dev_backend.models.product import ProductModel
from market.dev_backend.models.cart_item import CartItemModel
from market.dev_backend.models.payment import PaymentTransactionModel, IdempotencyKeyModel
from market.dev_backend.models.shipping_order import ShippingOrderModel, ReviewModel, VendorReportModel
from market.dev_backend.models.message import MessageModel, FollowModel

__all__ = [
    "UserModel",
    "ProductModel",
    "CartItemModel",
    "PaymentTransactionModel",
    "IdempotencyKeyModel",
    "ShippingOrderModel",
    "ReviewModel",
    "VendorReportModel",
    "MessageModel",
    "FollowModel",
]
