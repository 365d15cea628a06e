# app/repos/coupon_repo.py
from typing import NamedTuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.coupon import CouponModel, ProductRestrictionModel


class UsageState(NamedTuple):
    usage_count: int
    version: int
    max_uses: int | None


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(CouponModel.code == code)
        ).scalar_one_or_none()

    def get_by_id(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def list_auto_apply(self, limit: int) -> list[CouponModel]:
        #sortowanie po id = deterministyczny remis (wygrywa najnizsze id)
        return list(
            self.db.execute(
                select(CouponModel)
                .where(CouponModel.auto_apply.is_(True))
                .order_by(CouponModel.id)
                .limit(limit)
            ).scalars()
        )

    def list_restricted_product_ids(self, coupon_id: int) -> set[int]:
        return set(
            self.db.execute(
                select(ProductRestrictionModel.product_id).where(
                    ProductRestrictionModel.coupon_id == coupon_id
                )
            ).scalars()
        )

    def get_usage_state(self, coupon_id: int) -> UsageState | None:
        #select kolumn, nie encji, zeby nie dostac starej wersji z identity map
        row = self.db.execute(
            select(CouponModel.usage_count, CouponModel.version, CouponModel.max_uses).where(
                CouponModel.id == coupon_id
            )
        ).one_or_none()
        if row is None:
            return None
        return UsageState(*row)

    def conditional_increment_usage(self, coupon_id: int, expected_version: int) -> bool:
        """
        UPDATE coupons SET usage_count = usage_count + 1, version = version + 1
        WHERE id = :id AND version = :expected_version

        0 rows affected = ktos inny zmienil wiersz (konflikt), rollback i False.
        """
        rowcount = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                CouponModel.version == expected_version,
            )
            .values(
                usage_count=CouponModel.usage_count + 1,
                version=CouponModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            self.db.rollback()
            return False

        self.db.commit()
        return True

    def decrement_usage(self, coupon_id: int) -> int:
        #bez warunku na wersje, zmniejszenie nie moze przekroczyc limitu
        rowcount = self.db.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id, CouponModel.usage_count > 0)
            .values(
                usage_count=CouponModel.usage_count - 1,
                version=CouponModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        self.db.commit()
        return rowcount
