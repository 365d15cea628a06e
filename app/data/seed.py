# app/data/seed.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.data.database import Base, SessionLocal, engine
from app.data.models import CouponModel, ProductModel
from app.domain.pricing import DiscountType, to_hundredths
from app.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"sku": "PROD-1", "name": "Sample Product", "price_cents": 1000},
    {"sku": "PROD-2", "name": "Keyboard", "price_cents": 19999},
    {"sku": "PROD-3", "name": "Mouse", "price_cents": 4950},
]


def _coupons():
    return [
        {
            "code": "SAVE10",
            "discount_type": DiscountType.FIXED,
            "discount_value": to_hundredths(Decimal("10")),
            "expiry_date": datetime.now(timezone.utc) + timedelta(days=365),
        },
        {
            "code": "OFF10",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": to_hundredths(Decimal("10")),
            "max_discount_cents": 500,
        },
    ]


def seed():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # not forcing: only seed rows that are missing
        for data in PRODUCTS:
            if not db.query(ProductModel).filter_by(sku=data["sku"]).first():
                db.add(ProductModel(**data))
                logger.info(f"Seeded product {data['sku']}")

        for data in _coupons():
            if not db.query(CouponModel).filter_by(code=data["code"]).first():
                db.add(CouponModel(**data))
                logger.info(f"Seeded coupon {data['code']}")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
