# app/main.py
from fastapi import FastAPI
from app.data.database import Base, engine
from app.api.routers import (
    health, users, products, addresses, carts, orders, payments, admin, wishlist, reviews,
)
from app.utils.logging import get_logger
import uvicorn

logger = get_logger(__name__)

# IMPORT WSZYSTKICH MODELI NA POCZĄTKU (PRZED JAKIMKOLWIEK CREATE_ALL)
from app.data.models import (  # noqa: F401
    UserModel,
    ProductModel,
    AddressModel,
    CartItemModel,
    OrderModel,
    OrderItemModel,
    PendingOrderItemModel,
    WishlistItemModel,
    ReviewModel,
    ReviewVoteModel,
)

logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


def create_app() -> FastAPI:
    app = FastAPI(
        title="Furniture Store Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(addresses.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(admin.router)
    app.include_router(wishlist.router)
    app.include_router(reviews.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
