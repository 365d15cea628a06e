# app/domain/errors.py


class CartServiceError(Exception):
    """Bazowy blad domeny koszyka i kuponow."""


class NotFoundError(CartServiceError):
    pass


class InvalidInputError(CartServiceError):
    pass


class InvalidCouponError(CartServiceError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid coupon: {reason}")


class UsageLimitReachedError(CartServiceError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(
            "Coupon usage limit reached or collision detected. Please try again."
        )
