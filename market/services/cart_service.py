# market/services/cart_service.py
from decimal import Decimal
from typing import Iterable, List

from market.domain.errors import MarketError, StockError, ValidationError
from market.domain.schemas import BulkRemoval, CartItem, Product, round_money
from market.services.api_client import ApiClient
from market.utils.cancel import CancelToken, check_cancelled
from market.utils.logging import get_logger

logger = get_logger(__name__)


def _require_int(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number")
    return quantity


class CartService:
    """
    Client-side cart cache.
    commands (add, remove, set_quantity) go to the backend first and only
    the server's answer is written back, queries (items, total) read the cache
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self._items: List[CartItem] = []

    # query
    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def get(self, item_id: int) -> CartItem | None:
        return next((i for i in self._items if i.id == item_id), None)

    def find_by_product(self, product_id: int) -> CartItem | None:
        return next((i for i in self._items if i.product_id == product_id), None)

    def total(self, selection: Iterable[int] | None = None) -> Decimal:
        if selection is None:
            items = self._items
        else:
            wanted = set(selection)
            items = [i for i in self._items if i.id in wanted]
        return round_money(sum((i.line_total for i in items), Decimal("0.00")))

    def total_items(self) -> int:
        return sum(i.quantity for i in self._items)

    # commands
    def load(self, cancel_token: CancelToken | None = None) -> List[CartItem]:
        data = self.api.get("/cart")
        check_cancelled(cancel_token, "Loading cart")
        self._items = [CartItem.model_validate(row) for row in data or []]
        logger.info(f"Cart loaded with {len(self._items)} items")
        return self.items

    def add(
        self,
        product: Product,
        quantity: int = 1,
        cancel_token: CancelToken | None = None,
    ) -> CartItem:
        _require_int(quantity)
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        existing = self.find_by_product(product.id)
        wanted = quantity + (existing.quantity if existing else 0)
        if wanted > product.quantity_available:
            raise StockError(
                f"Only {product.quantity_available} of {product.name} available",
                requested=wanted,
                available=product.quantity_available,
            )

        logger.info(f"Adding {quantity} x product {product.id} to cart")
        data = self.api.post("/cart", {"product_id": product.id, "quantity": quantity})
        check_cancelled(cancel_token, "Adding to cart")

        item = CartItem.model_validate(data)
        self._merge(item)
        return item

    def _merge(self, item: CartItem):
        # one line per product, the server's copy wins
        merged, placed = [], False
        for current in self._items:
            if current.id == item.id or current.product_id == item.product_id:
                if not placed:
                    merged.append(item)
                    placed = True
                continue
            merged.append(current)
        if not placed:
            merged.append(item)
        self._items = merged

    def remove(self, item_id: int, cancel_token: CancelToken | None = None) -> None:
        logger.info(f"Removing cart item {item_id}")
        self.api.delete(f"/cart/{item_id}")
        check_cancelled(cancel_token, "Removing from cart")
        self._items = [i for i in self._items if i.id != item_id]

    def set_quantity(
        self,
        item_id: int,
        quantity: int,
        cancel_token: CancelToken | None = None,
    ) -> CartItem | None:
        _require_int(quantity)
        if quantity <= 0:
            self.remove(item_id, cancel_token)
            return None

        current = self.get(item_id)
        if current is not None and quantity > current.product.quantity_available:
            raise StockError(
                f"Only {current.product.quantity_available} of {current.product.name} available",
                requested=quantity,
                available=current.product.quantity_available,
            )

        logger.info(f"Setting cart item {item_id} quantity to {quantity}")
        data = self.api.patch(f"/cart/{item_id}", {"quantity": quantity})
        check_cancelled(cancel_token, "Updating cart")

        item = CartItem.model_validate(data)
        self._merge(item)
        return item

    def remove_selected(self, item_ids: Iterable[int]) -> BulkRemoval:
        result = BulkRemoval()
        for item_id in item_ids:
            try:
                self.remove(item_id)
                result.removed.append(item_id)
            except MarketError as e:
                logger.warning(f"Could not remove cart item {item_id}: {e}")
                result.failed[item_id] = e.message
        return result

    def clear_local(self) -> None:
        self._items = []
