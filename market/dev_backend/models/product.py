from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text

from market.dev_backend.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    location = Column(String, nullable=True)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
