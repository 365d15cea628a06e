from sqlalchemy import Column, Integer, String

from app.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False, unique=True)
    name = Column(String, nullable=False)
    price_cents = Column(Integer, nullable=False)
