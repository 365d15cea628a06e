# app/domain/pricing.py
"""
Arytmetyka rabatow na centach (int).

Wartosc rabatu kuponu trzymamy jako liczbe stalo-przecinkowa w setnych
czesciach: dla FIXED sa to centy, dla PERCENTAGE setne punktu procentowego
(czyli punkty bazowe). Decimal pojawia sie tylko na granicy (seed, API).
"""
import enum
from decimal import Decimal, ROUND_FLOOR


class DiscountType(str, enum.Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


def to_hundredths(value) -> int:
    """Decimal('12.345') -> 1234 (zaokraglenie w dol)."""
    scaled = Decimal(str(value)) * 100
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def from_hundredths(value: int) -> Decimal:
    return Decimal(value).scaleb(-2)


def format_cents(cents: int) -> str:
    """1050 -> '10.50'"""
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


def compute_discount(coupon, subtotal_cents: int) -> int:
    """
    Rabat w centach dla danego subtotalu.

    FIXED: floor(wartosc * 100), PERCENTAGE: floor(subtotal * procent / 100)
    przyciete do max_discount_cents. Wynik nigdy nie przekracza subtotalu.
    Funkcja czysta, nic nie modyfikuje.
    """
    if subtotal_cents <= 0:
        return 0

    if coupon.discount_type == DiscountType.FIXED:
        discount = coupon.discount_value
    else:
        #setne procenta -> dzielnik 100 * 100
        discount = subtotal_cents * coupon.discount_value // 10000
        if coupon.max_discount_cents is not None:
            discount = min(discount, coupon.max_discount_cents)

    return max(0, min(discount, subtotal_cents))
