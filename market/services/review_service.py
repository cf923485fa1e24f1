# market/services/review_service.py
from typing import List

from market.domain.errors import ValidationError
from market.domain.schemas import Review, Role, ShippingOrder, ShippingStatus
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)


class ReviewService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_reviews(self) -> List[Review]:
        data = self.api.get("/reviews")
        return [Review.model_validate(row) for row in data or []]

    def submit(self, order: ShippingOrder, rating: int, comment: str | None = None) -> Review:
        """One review per delivered order; the backend rejects duplicates."""
        self.api.session.require_user(Role.CUSTOMER)

        if order.shipping_status is not ShippingStatus.DELIVERED:
            raise ValidationError("You can only review delivered orders")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        payload = {
            "product_id": order.product_id,
            "rating": rating,
            "comment": (comment or "").strip() or None,
        }
        data = self.api.post("/reviews", payload)
        logger.info(f"Review for product {order.product_id} submitted ({rating}/5)")
        return Review.model_validate(data)
