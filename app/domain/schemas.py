# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")


class ItemQuantityIn(BaseModel):
    """Schema dla zmiany ilosci, 0 lub mniej usuwa pozycje."""

    quantity: int = Field(..., description="Nowa ilość produktu (<= 0 usuwa pozycję)")


class CouponApplyIn(BaseModel):
    """Schema dla nakladania kuponu."""

    code: str = Field(..., min_length=1, max_length=64, description="Kod kuponu")


class CartItemOut(BaseModel):
    product_id: int
    sku: str
    name: str
    price_cents: int
    quantity: int
    total_cents: int


class CartTotalsOut(BaseModel):
    subtotal_cents: int
    discount_cents: int
    final_total_cents: int
    applied_coupon_code: str | None = None


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    user_id: str
    items: List[CartItemOut]
    totals: CartTotalsOut


class ProductOut(BaseModel):
    id: int
    sku: str
    name: str
    price_cents: int

    model_config = ConfigDict(from_attributes=True)
