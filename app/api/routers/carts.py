#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.errors import (
    CartServiceError,
    NotFoundError,
    UsageLimitReachedError,
)
from app.domain.schemas import (
    CartOut,
    CouponApplyIn,
    ItemIn,
    ItemQuantityIn,
)
from app.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db=db)


def _to_http(e: CartServiceError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UsageLimitReachedError):
        return HTTPException(status_code=409, detail=str(e))
    #InvalidCouponError, InvalidInputError
    return HTTPException(status_code=400, detail=str(e))


@router.get("/{user_id}", response_model=CartOut)
def get_cart(user_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_cart_totals(user_id)


@router.post("/{user_id}/item", response_model=CartOut)
def add_item(user_id: str, payload: ItemIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_item(user_id, payload.product_id, payload.quantity)
    except CartServiceError as e:
        raise _to_http(e)


@router.put("/{user_id}/item/{product_id}", response_model=CartOut)
def update_item(
    user_id: str,
    product_id: int,
    payload: ItemQuantityIn,
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item_quantity(user_id, product_id, payload.quantity)
    except CartServiceError as e:
        raise _to_http(e)


@router.delete("/{user_id}/item/{product_id}", response_model=CartOut)
def remove_item(user_id: str, product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.remove_item(user_id, product_id)
    except CartServiceError as e:
        raise _to_http(e)


@router.post("/{user_id}/coupon/apply", response_model=CartOut)
def apply_coupon(user_id: str, payload: CouponApplyIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.apply_coupon(user_id, payload.code)
    except CartServiceError as e:
        raise _to_http(e)


@router.post("/{user_id}/coupon/remove", response_model=CartOut)
def remove_coupon(user_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.remove_coupon(user_id)
