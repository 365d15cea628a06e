# app/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.domain.validation import is_expired
from app.repos.cart_repo import CartRepo
from app.services.coupon_service import CouponService
from app.utils.logging import get_logger

logger = get_logger(__name__)


def release_expired_coupons(db: Session, now: datetime | None = None) -> int:
    """
    Zwalnia uzycia kuponow trzymane przez koszyki, w ktorych kupon wygasl
    albo zostal usuniety. Zwraca liczbe wyczyszczonych koszykow.
    """
    now = now or datetime.now(timezone.utc)
    repo = CartRepo(db)
    coupons = CouponService(db)

    #najpierw zbieramy id, commit wygasza obiekty ORM
    stale = [
        (cart.id, cart.applied_coupon_code, coupon.id if coupon is not None else None)
        for cart, coupon in repo.list_carts_with_coupons()
        if coupon is None or is_expired(coupon, now)
    ]

    released = 0
    for cart_id, code, coupon_id in stale:
        #koszyk mogl w miedzyczasie zmienic albo wyczyscic kod
        if not repo.clear_applied_coupon(cart_id, code):
            logger.info(f"Cart {cart_id}: coupon {code} changed concurrently, skipping")
            continue
        if coupon_id is not None:
            coupons.decrement_usage(coupon_id)
        released += 1
        logger.info(f"Cart {cart_id}: released stale coupon {code}")

    return released


@celery_app.task(name="app.tasks.expire.release_expired_coupons_task")
def release_expired_coupons_task():
    logger.info("Release expired coupons task started")

    db = SessionLocal()
    try:
        released = release_expired_coupons(db)
    finally:
        db.close()

    logger.info(f"Released coupons from {released} carts")
    return released
