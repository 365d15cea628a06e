import threading

from app.domain.cart import CartLine, CartSnapshot
from app.domain.pricing import DiscountType
from app.repos.coupon_repo import CouponRepo
from app.services.coupon_service import CouponService


def cart_worth(subtotal_cents, product_id=1, quantity=1):
    return CartSnapshot(
        cart_id=1,
        lines=(
            CartLine(
                product_id=product_id,
                sku="SKU",
                name="Product",
                price_cents=subtotal_cents // quantity,
                quantity=quantity,
            ),
        ),
    )


def test_increment_bumps_usage_and_version(db, make_coupon):
    coupon = make_coupon("INC")
    service = CouponService(db)

    assert service.increment_usage(coupon.id) is True

    db.refresh(coupon)
    assert coupon.usage_count == 1
    assert coupon.version == 2


def test_increment_refuses_when_cap_reached(db, make_coupon):
    coupon = make_coupon("CAPPED", max_uses=2, usage_count=2)
    service = CouponService(db)

    assert service.increment_usage(coupon.id) is False

    db.refresh(coupon)
    assert coupon.usage_count == 2
    assert coupon.version == 1


def test_increment_unknown_coupon(db):
    assert CouponService(db).increment_usage(12345) is False


def test_conflict_is_retried_with_fresh_version(db, session_factory, make_coupon, monkeypatch):
    coupon = make_coupon("RACE")
    service = CouponService(db)
    real_write = service.repo.conditional_increment_usage
    seen_versions = []

    def racing_write(coupon_id, expected_version):
        if not seen_versions:
            #inny writer zdazyl zmienic wiersz miedzy odczytem a zapisem
            other = session_factory()
            try:
                assert CouponRepo(other).conditional_increment_usage(coupon_id, expected_version)
            finally:
                other.close()
        seen_versions.append(expected_version)
        return real_write(coupon_id, expected_version)

    monkeypatch.setattr(service.repo, "conditional_increment_usage", racing_write)

    assert service.increment_usage(coupon.id) is True
    assert seen_versions == [1, 2]

    db.refresh(coupon)
    assert coupon.usage_count == 2
    assert coupon.version == 3


def test_conflict_that_exhausts_the_cap(db, session_factory, make_coupon, monkeypatch):
    coupon = make_coupon("LAST", max_uses=1)
    service = CouponService(db)
    real_write = service.repo.conditional_increment_usage
    calls = []

    def racing_write(coupon_id, expected_version):
        other = session_factory()
        try:
            CouponRepo(other).conditional_increment_usage(coupon_id, expected_version)
        finally:
            other.close()
        calls.append(expected_version)
        return real_write(coupon_id, expected_version)

    monkeypatch.setattr(service.repo, "conditional_increment_usage", racing_write)

    assert service.increment_usage(coupon.id) is False
    #po konflikcie ponowny odczyt widzi limit i nie probuje zapisu
    assert calls == [1]

    db.refresh(coupon)
    assert coupon.usage_count == 1


def test_retry_budget_is_three_attempts(db, make_coupon, monkeypatch):
    coupon = make_coupon("BUSY")
    service = CouponService(db)
    calls = []

    def always_conflict(coupon_id, expected_version):
        calls.append(expected_version)
        return False

    monkeypatch.setattr(service.repo, "conditional_increment_usage", always_conflict)

    assert service.increment_usage(coupon.id) is False
    assert len(calls) == 3

    db.refresh(coupon)
    assert coupon.usage_count == 0


def test_decrement_releases_a_use(db, make_coupon):
    coupon = make_coupon("DEC", usage_count=1)
    CouponService(db).decrement_usage(coupon.id)

    db.refresh(coupon)
    assert coupon.usage_count == 0
    assert coupon.version == 2


def test_decrement_never_goes_below_zero(db, make_coupon):
    coupon = make_coupon("ZERO")
    CouponService(db).decrement_usage(coupon.id)

    db.refresh(coupon)
    assert coupon.usage_count == 0


def test_concurrent_increments_never_exceed_max_uses(session_factory, make_coupon):
    coupon_id = make_coupon("LIMITED", max_uses=3).id
    workers = 8
    barrier = threading.Barrier(workers)
    results, errors = [], []
    lock = threading.Lock()

    def worker():
        session = session_factory()
        try:
            service = CouponService(session)
            barrier.wait()
            ok = service.increment_usage(coupon_id)
            with lock:
                results.append(ok)
        except Exception as e:  # zbieramy, asercja nizej
            with lock:
                errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert results.count(True) == 3

    check = session_factory()
    try:
        stored = CouponRepo(check).get_usage_state(coupon_id)
    finally:
        check.close()
    assert stored.usage_count == 3


def test_best_auto_coupon_maximizes_discount(db, make_coupon):
    make_coupon("AUTO5", value="5", auto_apply=True)
    best = make_coupon("AUTO20PCT", DiscountType.PERCENTAGE, value="20", auto_apply=True)
    make_coupon("AUTO50BIG", value="50", auto_apply=True, min_cart_total_cents=100000)
    make_coupon("MANUAL40", value="40")

    found = CouponService(db).find_best_auto_coupon(cart_worth(5000))

    assert found.id == best.id


def test_best_auto_coupon_tie_goes_to_lowest_id(db, make_coupon):
    first = make_coupon("AUTO-A", value="5", auto_apply=True)
    make_coupon("AUTO-B", value="5", auto_apply=True)
    make_coupon("AUTO-C", DiscountType.PERCENTAGE, value="10", auto_apply=True)  # 500 przy 5000

    found = CouponService(db).find_best_auto_coupon(cart_worth(5000))

    assert found.id == first.id


def test_best_auto_coupon_respects_restrictions(db, make_coupon):
    make_coupon("ONLY-99", value="30", auto_apply=True, restricted_to=[99])
    fallback = make_coupon("ANY", value="1", auto_apply=True)

    found = CouponService(db).find_best_auto_coupon(cart_worth(5000, product_id=1))

    assert found.id == fallback.id


def test_no_auto_coupon_validates(db, make_coupon):
    make_coupon("BIGSPEND", value="5", auto_apply=True, min_cart_total_cents=10000)

    assert CouponService(db).find_best_auto_coupon(cart_worth(5000)) is None
