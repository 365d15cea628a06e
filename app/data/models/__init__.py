#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.product import ProductModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.coupon import CouponModel, ProductRestrictionModel

__all__ = [
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "CouponModel",
    "ProductRestrictionModel",
]
