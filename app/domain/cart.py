# app/domain/cart.py
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CartLine:
    product_id: int
    sku: str
    name: str
    price_cents: int
    quantity: int

    @property
    def total_cents(self) -> int:
        return self.price_cents * self.quantity


@dataclass(frozen=True)
class CartSnapshot:
    """Niezmienny widok koszyka w chwili odczytu, na nim liczymy walidacje i rabaty."""

    cart_id: int
    lines: Tuple[CartLine, ...] = ()

    @property
    def subtotal_cents(self) -> int:
        return sum(line.total_cents for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def product_ids(self) -> set[int]:
        return {line.product_id for line in self.lines}

    @classmethod
    def from_items(cls, cart_id: int, items) -> "CartSnapshot":
        return cls(
            cart_id=cart_id,
            lines=tuple(
                CartLine(
                    product_id=i.product_id,
                    sku=i.product.sku,
                    name=i.product.name,
                    price_cents=i.product.price_cents,
                    quantity=i.quantity,
                )
                for i in items
            ),
        )
