# market/services/order_service.py
import uuid
from typing import List

from market.domain.errors import ValidationError
from market.domain.schemas import Role, ShippingOrder, ShippingStatus
from market.services.api_client import ApiClient
from market.utils.cancel import CancelToken, check_cancelled
from market.utils.logging import get_logger

logger = get_logger(__name__)


def verification_key(user_id: int, order_id: int, received: bool) -> str:
    """Same answer for the same order always carries the same key."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"verify:{user_id}:{order_id}:{received}"))


class OrderService:
    """
    Shipping orders visible to the current user.
    Customers see their own orders, vendors the orders for their products.
    The list is a cache that every state-changing call throws away.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self._orders: List[ShippingOrder] | None = None

    @property
    def cached(self) -> bool:
        return self._orders is not None

    def invalidate(self) -> None:
        self._orders = None

    def list_orders(
        self,
        refresh: bool = False,
        cancel_token: CancelToken | None = None,
    ) -> List[ShippingOrder]:
        if self._orders is not None and not refresh:
            return list(self._orders)

        data = self.api.get("/shipping")
        check_cancelled(cancel_token, "Loading orders")
        self._orders = [ShippingOrder.model_validate(row) for row in data or []]
        logger.info(f"Loaded {len(self._orders)} shipping orders")
        return list(self._orders)

    def get(self, order_id: int) -> ShippingOrder | None:
        return next((o for o in self.list_orders() if o.id == order_id), None)

    def awaiting_verification(self) -> List[ShippingOrder]:
        return [o for o in self.list_orders() if o.shows_verification_prompt]

    def verify_delivery(
        self,
        order_id: int,
        received: bool,
        cancel_token: CancelToken | None = None,
    ) -> ShippingOrder | None:
        """
        received=True asks the backend to release the held funds to the vendor,
        received=False opens a dispute. Repeats are deduplicated server-side.
        """
        user = self.api.session.require_user(Role.CUSTOMER)

        logger.info(f"Verifying delivery of order {order_id}: received={received}")
        data = self.api.post(
            f"/shipping/{order_id}/verify",
            {"verified": received},
            idempotency_key=verification_key(user.id, order_id, received),
        )
        self.invalidate()
        check_cancelled(cancel_token, "Verifying delivery")

        if data:
            order = ShippingOrder.model_validate(data)
        else:
            order = self.get(order_id)

        if order is not None and order.payment_released:
            logger.info(f"Payment for order {order_id} released to vendor {order.vendor_id}")
        return order

    def update_status(
        self,
        order_id: int,
        status: ShippingStatus | str,
        tracking_number: str | None = None,
    ) -> ShippingOrder:
        self.api.session.require_user(Role.VENDOR)
        try:
            status = ShippingStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown shipping status: {status}")

        payload = {"shipping_status": status.value}
        if tracking_number:
            payload["tracking_number"] = tracking_number.strip()

        logger.info(f"Order {order_id} -> {status.value}")
        data = self.api.patch(f"/shipping/{order_id}/status", payload)
        self.invalidate()
        return ShippingOrder.model_validate(data)
