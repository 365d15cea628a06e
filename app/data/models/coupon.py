from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.data.database import Base
from app.domain.pricing import DiscountType


class CouponModel(Base):
    """
    Kupon rabatowy.

    discount_value jest liczba stalo-przecinkowa w setnych czesciach:
    FIXED -> centy (20.00 = 2000), PERCENTAGE -> setne punktu procentowego (10% = 1000).
    """

    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    code = Column(String(64), nullable=False, unique=True, index=True)

    discount_type = Column(Enum(DiscountType, native_enum=False, length=16), nullable=False)
    discount_value = Column(Integer, nullable=False)

    expiry_date = Column(DateTime(timezone=True), nullable=True)
    max_discount_cents = Column(Integer, nullable=True)  # tylko PERCENTAGE
    min_cart_total_cents = Column(Integer, nullable=True)
    min_cart_items = Column(Integer, nullable=True)
    max_uses = Column(Integer, nullable=True)

    #licznik uzyc + wersja do optimistic locking
    usage_count = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)

    auto_apply = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restrictions = relationship(
        "ProductRestrictionModel",
        back_populates="coupon",
        cascade="all, delete-orphan",
    )


class ProductRestrictionModel(Base):
    __tablename__ = "product_restrictions"

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    coupon = relationship("CouponModel", back_populates="restrictions")

    __table_args__ = (UniqueConstraint("coupon_id", "product_id", name="u_coupon_product"),)
