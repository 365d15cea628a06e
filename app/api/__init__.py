# app/api/__init__.py
from fastapi import FastAPI
from app.api.routers import carts, products
from app.api.routers.health import router as health_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cart Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(products.router)
    app.include_router(carts.router)

    return app
