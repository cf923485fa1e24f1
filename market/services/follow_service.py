# market/services/follow_service.py
from typing import List

from market.domain.schemas import Follow
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)


class FollowService:
    """Vendors the current customer follows, refreshed from each server answer."""

    def __init__(self, api: ApiClient):
        self.api = api
        self._follows: List[Follow] = []

    @property
    def follows(self) -> List[Follow]:
        return list(self._follows)

    def load(self) -> List[Follow]:
        data = self.api.get("/follow")
        self._follows = [Follow.model_validate(row) for row in data or []]
        return self.follows

    def is_following(self, vendor_id: int) -> bool:
        return any(f.vendor_id == vendor_id for f in self._follows)

    def follow(self, vendor_id: int) -> Follow:
        data = self.api.post("/follow", {"vendor_id": vendor_id})
        follow = Follow.model_validate(data)
        self._follows = [f for f in self._follows if f.vendor_id != vendor_id] + [follow]
        logger.info(f"Following vendor {vendor_id}")
        return follow

    def unfollow(self, vendor_id: int) -> None:
        self.api.delete(f"/follow/{vendor_id}")
        self._follows = [f for f in self._follows if f.vendor_id != vendor_id]
        logger.info(f"Unfollowed vendor {vendor_id}")
