"""Konfiguracja pytest dla testow serwisu koszyka."""

import itertools
import os
from decimal import Decimal

# Aplikacja nie moze siegac do Postgresa w testach, ustawiamy przed importami app.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.api import create_app  # noqa: E402
from app.data.database import Base, get_db  # noqa: E402
from app.data.models import (  # noqa: E402
    CouponModel,
    ProductModel,
    ProductRestrictionModel,
)
from app.domain.pricing import DiscountType, to_hundredths  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """Swieza baza sqlite w pliku dla kazdego testu (plik, bo testy wspolbieznosci uzywaja watkow)."""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'cart.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_product(db):
    counter = itertools.count(1)

    def _make(price_cents: int = 1000, name: str | None = None, sku: str | None = None):
        n = next(counter)
        product = ProductModel(
            sku=sku or f"TEST-PROD-{n}",
            name=name or f"Test Product {n}",
            price_cents=price_cents,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_coupon(db):
    def _make(
        code: str,
        discount_type: DiscountType = DiscountType.FIXED,
        value: str = "10",
        restricted_to=(),
        **fields,
    ):
        coupon = CouponModel(
            code=code,
            discount_type=discount_type,
            discount_value=to_hundredths(Decimal(value)),
            **fields,
        )
        db.add(coupon)
        db.flush()
        for product_id in restricted_to:
            db.add(ProductRestrictionModel(coupon_id=coupon.id, product_id=product_id))
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make
