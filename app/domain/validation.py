# app/domain/validation.py
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from app.domain.cart import CartSnapshot
from app.domain.pricing import format_cents


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None


VALID = ValidationResult(valid=True)

USAGE_LIMIT_REACHED = "Coupon usage limit reached"


def _as_utc(value: datetime) -> datetime:
    #sqlite gubi strefe czasowa, traktujemy takie daty jako UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(coupon, now: datetime | None = None) -> bool:
    if coupon.expiry_date is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _as_utc(now) > _as_utc(coupon.expiry_date)


def validate_coupon(
    coupon,
    snapshot: CartSnapshot,
    restricted_products: Callable[[int], Iterable[int]],
    now: datetime | None = None,
    holds_slot: bool = False,
) -> ValidationResult:
    """
    Sprawdza kupon wzgledem koszyka, bez efektow ubocznych.

    Kolejnosc: data waznosci, limit uzyc, minimalna ilosc sztuk, minimalna
    wartosc koszyka, ograniczenie do produktow. Zwraca pierwszy blad.

    holds_slot=True oznacza ze ten koszyk juz zajmuje jedno uzycie kuponu
    (ponowna walidacja nalozonego kuponu), wiec nie liczymy go przeciwko sobie.
    restricted_products wolane jest dopiero na koncu, tylko gdy potrzeba.
    """
    if is_expired(coupon, now):
        return ValidationResult(False, "Coupon has expired")

    if coupon.max_uses is not None:
        used = coupon.usage_count - 1 if holds_slot else coupon.usage_count
        if used >= coupon.max_uses:
            return ValidationResult(False, USAGE_LIMIT_REACHED)

    if coupon.min_cart_items is not None and snapshot.item_count < coupon.min_cart_items:
        return ValidationResult(False, f"Minimum {coupon.min_cart_items} items required")

    if (
        coupon.min_cart_total_cents is not None
        and snapshot.subtotal_cents < coupon.min_cart_total_cents
    ):
        return ValidationResult(
            False,
            f"Minimum cart total of {format_cents(coupon.min_cart_total_cents)} required",
        )

    allowed = set(restricted_products(coupon.id))
    if allowed and not (allowed & snapshot.product_ids):
        return ValidationResult(False, "Coupon is not applicable to any items in your cart")

    return VALID
