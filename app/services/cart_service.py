from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.coupon import CouponModel
from app.domain.cart import CartSnapshot
from app.domain.errors import (
    InvalidCouponError,
    InvalidInputError,
    NotFoundError,
    UsageLimitReachedError,
)
from app.domain.pricing import compute_discount
from app.domain.validation import USAGE_LIMIT_REACHED
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.services.coupon_service import CouponService
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use case'y koszyka: produkty, kupony, sumy.

    Kazdy odczyt i kazda komenda koncza sie przeliczeniem sum
    (calculate_totals), ktore przy okazji naprawia stan kuponu w koszyku:
    usuwa niewazny kod i podmienia kupon auto na lepszy. Odczyt moze wiec
    zapisywac do bazy.
    """

    def __init__(self, db: Session, coupon_service: CouponService | None = None):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.coupons = coupon_service or CouponService(db)

    #query (z samonaprawa stanu kuponu)
    def get_cart_totals(self, user_id: str) -> Dict[str, Any]:
        cart = self._get_or_create_cart(user_id)
        return self.calculate_totals(cart)

    #commands
    def add_item(self, user_id: str, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise InvalidInputError("Quantity must be greater than 0")

        if not self.products.get_product(product_id):
            raise NotFoundError("Product not found")

        cart = self._get_or_create_cart(user_id)
        item = self.repo.upsert_cart_item(cart.id, product_id, quantity)
        logger.info(f"Cart {cart.id}: product {product_id} quantity -> {item.quantity}")

        return self.calculate_totals(cart)

    def update_item_quantity(self, user_id: str, product_id: int, quantity: int) -> Dict[str, Any]:
        cart = self._require_cart(user_id)

        #ilosc <= 0 to usuniecie pozycji
        if quantity <= 0:
            return self.remove_item(user_id, product_id)

        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        self.repo.set_item_quantity(item, quantity)
        logger.info(f"Cart {cart.id}: product {product_id} quantity set to {quantity}")

        return self.calculate_totals(cart)

    def remove_item(self, user_id: str, product_id: int) -> Dict[str, Any]:
        cart = self._require_cart(user_id)

        #brak pozycji ignorujemy
        if self.repo.delete_cart_item(cart.id, product_id):
            logger.info(f"Cart {cart.id}: product {product_id} removed")

        return self.calculate_totals(cart)

    def apply_coupon(self, user_id: str, code: str) -> Dict[str, Any]:
        cart = self._require_cart(user_id)

        coupon = self.coupons.get_coupon_by_code(code)
        if not coupon:
            raise NotFoundError("Coupon not found")

        #ten sam kod juz nalozony, nie liczymy drugiego uzycia
        previous_code = cart.applied_coupon_code
        if previous_code == code:
            return self.calculate_totals(cart)

        snapshot = self._snapshot(cart)
        result = self.coupons.validate(coupon, snapshot)
        if result.reason == USAGE_LIMIT_REACHED:
            raise UsageLimitReachedError(code)
        if not result.valid:
            raise InvalidCouponError(result.reason)

        if not self.coupons.increment_usage(coupon.id):
            raise UsageLimitReachedError(code)

        #zwolnij miejsce poprzedniego kuponu
        if previous_code:
            self._release_coupon(previous_code)

        self.repo.set_applied_coupon(snapshot.cart_id, code)
        logger.info(f"Cart {snapshot.cart_id}: coupon {code} applied")

        #pelne przeliczenie, manualny kupon tez przechodzi ponowna walidacje
        return self.calculate_totals(cart)

    def remove_coupon(self, user_id: str) -> Dict[str, Any]:
        cart = self._get_or_create_cart(user_id)

        code = cart.applied_coupon_code
        if code:
            self._release_coupon(code)
            self.repo.set_applied_coupon(cart.id, None)
            logger.info(f"Cart {cart.id}: coupon {code} removed")

        return self.calculate_totals(cart)

    def calculate_totals(self, cart: CartModel) -> Dict[str, Any]:
        """
        Uzgodnienie kuponu i sumy koszyka.

        1. zapisany kod -> walidacja; niewazny albo nieistniejacy jest czyszczony,
           manualny wazny wygrywa zawsze
        2. bez manualnego -> najlepszy kupon auto, podmiana tylko gdy daje
           scisle wiekszy rabat i uda sie zajac uzycie
        3-4. rabat i suma koncowa
        """
        user_id = cart.user_id
        snapshot = self._snapshot(cart)
        stored_code = cart.applied_coupon_code

        active = self._reconcile_stored_coupon(snapshot, stored_code)
        manual = active is not None and not active.auto_apply

        if not manual:
            active = self._apply_best_auto_coupon(snapshot, active)

        subtotal = snapshot.subtotal_cents
        discount = compute_discount(active, subtotal) if active else 0

        return {
            "user_id": user_id,
            "items": [
                {
                    "product_id": line.product_id,
                    "sku": line.sku,
                    "name": line.name,
                    "price_cents": line.price_cents,
                    "quantity": line.quantity,
                    "total_cents": line.total_cents,
                }
                for line in snapshot.lines
            ],
            "totals": {
                "subtotal_cents": subtotal,
                "discount_cents": discount,
                "final_total_cents": subtotal - discount,
                "applied_coupon_code": active.code if active else None,
            },
        }

    def _reconcile_stored_coupon(
        self, snapshot: CartSnapshot, stored_code: str | None
    ) -> CouponModel | None:
        if not stored_code:
            return None

        coupon = self.coupons.get_coupon_by_code(stored_code)
        if not coupon:
            logger.info(f"Cart {snapshot.cart_id}: coupon {stored_code} no longer exists, clearing")
            self.repo.set_applied_coupon(snapshot.cart_id, None)
            return None

        result = self.coupons.validate(coupon, snapshot, holds_slot=True)
        if not result.valid:
            logger.info(
                f"Cart {snapshot.cart_id}: coupon {stored_code} invalid ({result.reason}), clearing"
            )
            self.coupons.decrement_usage(coupon.id)
            self.repo.set_applied_coupon(snapshot.cart_id, None)
            return None

        return coupon

    def _apply_best_auto_coupon(
        self,
        snapshot: CartSnapshot,
        incumbent: CouponModel | None,
    ) -> CouponModel | None:
        subtotal = snapshot.subtotal_cents
        candidate = self.coupons.find_best_auto_coupon(snapshot)

        #bez kandydata i bez kuponu: zapisany kod wyczyscil juz _reconcile_stored_coupon
        if candidate is None:
            return incumbent

        incumbent_discount = compute_discount(incumbent, subtotal) if incumbent else 0
        if compute_discount(candidate, subtotal) <= incumbent_discount:
            return incumbent

        #najpierw zajmij uzycie kandydata, dopiero potem zwolnij obecny
        if not self.coupons.increment_usage(candidate.id):
            logger.info(f"Cart {snapshot.cart_id}: auto coupon {candidate.code} lost the race")
            return incumbent

        if incumbent is not None:
            self.coupons.decrement_usage(incumbent.id)

        self.repo.set_applied_coupon(snapshot.cart_id, candidate.code)
        logger.info(
            f"Cart {snapshot.cart_id}: auto coupon {candidate.code} applied"
            + (f" (replaced {incumbent.code})" if incumbent is not None else "")
        )
        return candidate

    def _release_coupon(self, code: str) -> None:
        coupon = self.coupons.get_coupon_by_code(code)
        if coupon:
            self.coupons.decrement_usage(coupon.id)

    def _snapshot(self, cart: CartModel) -> CartSnapshot:
        return CartSnapshot.from_items(cart.id, self.repo.get_cart_items(cart.id))

    def _require_cart(self, user_id: str) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def _get_or_create_cart(self, user_id: str) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id))
        except IntegrityError:
            #rownolegle zapytanie utworzylo koszyk pierwsze
            self.repo.rollback()
            return self._require_cart(user_id)

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created
