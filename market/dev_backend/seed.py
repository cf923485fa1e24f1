# market/dev_backend/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from market.dev_backend.models import ProductModel, UserModel
from market.dev_backend.routers.auth import hash_password


def seed(db: Session):
    # only seed an empty database
    if db.query(UserModel).first():
        return

    vendor = UserModel(
        username="shamba_fresh",
        email="vendor@example.com",
        password_hash=hash_password("vendor123"),
        role="Vendor",
        verified=True,
        location="Nakuru",
        wallet_balance=0,
    )
    customer = UserModel(
        username="wanjiku",
        email="customer@example.com",
        password_hash=hash_password("customer123"),
        role="Customer",
        location="Nairobi",
        wallet_balance=0,
    )
    db.add_all([vendor, customer])
    db.flush()

    db.add_all(
        [
            ProductModel(name="Sukuma wiki (bunch)", price=Decimal("30.00"), category="Vegetables",
                         quantity=120, vendor_id=vendor.id, location="Nakuru"),
            ProductModel(name="Avocado (kg)", price=Decimal("150.00"), category="Fruits",
                         quantity=40, vendor_id=vendor.id, location="Nakuru"),
            ProductModel(name="Fresh milk (litre)", price=Decimal("65.50"), category="Dairy",
                         quantity=25, vendor_id=vendor.id, location="Nakuru"),
        ]
    )
    db.commit()
