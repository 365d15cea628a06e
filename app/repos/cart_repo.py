# app/repos/cart_repo.py
from sqlalchemy import select, delete, update
from sqlalchemy.orm import Session, joinedload

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.coupon import CouponModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(joinedload(CartItemModel.product))
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def upsert_cart_item(self, cart_id: int, product_id: int, quantity_delta: int) -> CartItemModel:
        #jeden wiersz na (koszyk, produkt), ponowne dodanie zwieksza ilosc
        item = self.get_cart_item(cart_id, product_id)
        if item:
            item.quantity += quantity_delta
        else:
            item = CartItemModel(cart_id=cart_id, product_id=product_id, quantity=quantity_delta)
            self.db.add(item)
        self.db.commit()
        return item

    def set_item_quantity(self, item: CartItemModel, quantity: int) -> CartItemModel:
        item.quantity = quantity
        self.db.commit()
        return item

    def delete_cart_item(self, cart_id: int, product_id: int) -> int:
        rowcount = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).rowcount
        self.db.commit()
        return rowcount

    def set_applied_coupon(self, cart_id: int, code: str | None) -> None:
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(applied_coupon_code=code)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def clear_applied_coupon(self, cart_id: int, code: str) -> int:
        """Czysci kod tylko gdy koszyk nadal trzyma `code`; zwraca rowcount."""
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.applied_coupon_code == code)
            .values(applied_coupon_code=None)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def list_carts_with_coupons(self) -> list[tuple[CartModel, CouponModel | None]]:
        """Koszyki z nalozonym kodem + kupon (None gdy kod juz nie istnieje)."""
        rows = self.db.execute(
            select(CartModel, CouponModel)
            .outerjoin(CouponModel, CouponModel.code == CartModel.applied_coupon_code)
            .where(CartModel.applied_coupon_code.is_not(None))
            .order_by(CartModel.id)
        ).all()
        return [(cart, coupon) for cart, coupon in rows]

    def rollback(self) -> None:
        self.db.rollback()
