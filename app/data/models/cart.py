#app/data/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    #jeden koszyk na uzytkownika
    user_id = Column(String(128), nullable=False, unique=True, index=True)

    #kod aktualnie nalozonego kuponu (manualny albo auto), None = brak
    applied_coupon_code = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
    )
