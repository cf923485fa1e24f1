from sqlalchemy import Boolean, Column, Integer, Numeric, String

from market.dev_backend.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="Customer")  # Customer, Vendor, Admin
    verified = Column(Boolean, nullable=False, default=False)
    banned = Column(Boolean, nullable=False, default=False)
    location = Column(String, nullable=True)
    token = Column(String, nullable=True, unique=True)
    mpesa_number = Column(String, nullable=True)
    wallet_balance = Column(Numeric(12, 2), nullable=False, default=0)
