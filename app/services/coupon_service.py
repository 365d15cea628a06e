# app/services/coupon_service.py
import logging

from sqlalchemy.orm import Session
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.data.models.coupon import CouponModel
from app.domain.cart import CartSnapshot
from app.domain.pricing import compute_discount
from app.domain.validation import ValidationResult, validate_coupon
from app.repos.coupon_repo import CouponRepo
from app.utils.logging import get_logger
from app.utils.settings import (
    AUTO_COUPON_SCAN_LIMIT,
    COUPON_RETRY_WAIT_MAX,
    COUPON_USAGE_MAX_ATTEMPTS,
)

logger = get_logger(__name__)


class UsageConflict(Exception):
    """Konflikt wersji przy inkrementacji licznika, tylko do petli retry."""

    def __init__(self, coupon_id: int):
        self.coupon_id = coupon_id
        super().__init__(f"Concurrency conflict for coupon {coupon_id}")


def _give_up(retry_state) -> bool:
    logger.warning(
        f"Coupon usage increment gave up after {retry_state.attempt_number} attempts"
    )
    return False


#tenacity retry, po wyczerpaniu prob zwracamy False zamiast wyjatku
def usage_retry():
    return retry(
        stop=stop_after_attempt(COUPON_USAGE_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.01, max=COUPON_RETRY_WAIT_MAX),
        retry=retry_if_exception_type(UsageConflict),
        before_sleep=before_sleep_log(logger, logging.INFO),
        retry_error_callback=_give_up,
    )


class CouponService:
    """
    -walidacja kuponu wzgledem koszyka
    -licznik uzyc z optimistic locking (version)
    -wybor najlepszego kuponu auto
    """

    def __init__(self, db: Session):
        self.repo = CouponRepo(db)

    def get_coupon_by_code(self, code: str) -> CouponModel | None:
        return self.repo.get_by_code(code)

    def validate(
        self,
        coupon: CouponModel,
        snapshot: CartSnapshot,
        holds_slot: bool = False,
    ) -> ValidationResult:
        return validate_coupon(
            coupon,
            snapshot,
            restricted_products=self.repo.list_restricted_product_ids,
            holds_slot=holds_slot,
        )

    @usage_retry()
    def increment_usage(self, coupon_id: int) -> bool:
        """
        Jedyna droga zwiekszenia licznika uzyc.

        Odczyt (usage_count, version, max_uses), sprawdzenie limitu, potem
        UPDATE ... WHERE version = odczytana. Konflikt -> ponow caly odczyt.
        """
        state = self.repo.get_usage_state(coupon_id)
        if state is None:
            return False

        if state.max_uses is not None and state.usage_count >= state.max_uses:
            logger.info(f"Coupon {coupon_id} reached max uses ({state.max_uses})")
            return False

        if not self.repo.conditional_increment_usage(coupon_id, state.version):
            logger.info(f"Concurrency conflict for coupon {coupon_id} at version {state.version}")
            raise UsageConflict(coupon_id)

        logger.info(f"Coupon {coupon_id} usage -> {state.usage_count + 1}")
        return True

    def decrement_usage(self, coupon_id: int) -> None:
        if not self.repo.decrement_usage(coupon_id):
            logger.warning(f"Coupon {coupon_id} usage not decremented (missing or already 0)")
            return
        logger.info(f"Coupon {coupon_id} usage released")

    def find_best_auto_coupon(self, snapshot: CartSnapshot) -> CouponModel | None:
        subtotal = snapshot.subtotal_cents
        best: CouponModel | None = None
        best_discount = -1

        for coupon in self.repo.list_auto_apply(limit=AUTO_COUPON_SCAN_LIMIT):
            if not self.validate(coupon, snapshot).valid:
                continue
            discount = compute_discount(coupon, subtotal)
            #tylko wiekszy rabat wypiera, przy remisie zostaje nizsze id
            if discount > best_discount:
                best, best_discount = coupon, discount

        return best
