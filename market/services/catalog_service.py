# market/services/catalog_service.py
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from market.domain.errors import ValidationError
from market.domain.schemas import Product, ProductIn, Role, VendorProfile
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)

SORT_KEYS = {
    "price_asc": (lambda p: (p.price, p.name.lower()), False),
    "price_desc": (lambda p: (p.price, p.name.lower()), True),
    "name": (lambda p: p.name.lower(), False),
    "stock": (lambda p: p.quantity_available, True),
}


def filter_products(
    products: Iterable[Product],
    search: str | None = None,
    category: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    vendor_id: int | None = None,
    in_stock_only: bool = False,
) -> List[Product]:
    needle = (search or "").strip().lower()
    result = []
    for p in products:
        if needle and needle not in p.name.lower() and needle not in (p.description or "").lower():
            continue
        if category and (p.category or "").lower() != category.lower():
            continue
        if min_price is not None and p.price < Decimal(str(min_price)):
            continue
        if max_price is not None and p.price > Decimal(str(max_price)):
            continue
        if vendor_id is not None and p.vendor_id != vendor_id:
            continue
        if in_stock_only and not p.in_stock:
            continue
        result.append(p)
    return result


def sort_products(products: Iterable[Product], key: str = "name") -> List[Product]:
    if key not in SORT_KEYS:
        raise ValidationError(f"Unknown sort order: {key}")
    fn, reverse = SORT_KEYS[key]
    return sorted(products, key=fn, reverse=reverse)


def group_by_vendor(products: Iterable[Product]) -> Dict[int, List[Product]]:
    groups = defaultdict(list)
    for p in products:
        groups[p.vendor_id].append(p)
    return dict(groups)


def group_by_category(products: Iterable[Product]) -> Dict[str, List[Product]]:
    groups = defaultdict(list)
    for p in products:
        groups[p.category or "Uncategorized"].append(p)
    return dict(groups)


class CatalogService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_products(self, location: str | None = None) -> List[Product]:
        session = self.api.session
        if location is None and session.location_based_shopping:
            location = session.location

        params = {"location": location} if location else None
        data = self.api.get("/products", params=params)
        products = [Product.model_validate(row) for row in data or []]
        logger.info(f"Fetched {len(products)} products (location={location})")
        return products

    def get_product(self, product_id: int) -> Product | None:
        return next((p for p in self.list_products() if p.id == product_id), None)

    def vendor_profile(self, vendor_id: int) -> VendorProfile:
        data = self.api.get(f"/vendors/{vendor_id}/profile")
        return VendorProfile.model_validate(data)

    # vendor commands
    def create_product(self, payload: ProductIn) -> Product:
        self.api.session.require_user(Role.VENDOR)
        data = self.api.post("/products", payload.model_dump(mode="json"))
        product = Product.model_validate(data)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: int, payload: ProductIn) -> Product:
        self.api.session.require_user(Role.VENDOR)
        data = self.api.patch(f"/products/{product_id}", payload.model_dump(mode="json", exclude_none=True))
        logger.info(f"Updated product {product_id}")
        return Product.model_validate(data)

    def delete_product(self, product_id: int) -> None:
        self.api.session.require_user(Role.VENDOR)
        self.api.delete(f"/products/{product_id}")
        logger.info(f"Deleted product {product_id}")
