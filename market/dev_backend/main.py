# market/dev_backend/main.py
from fastapi import FastAPI
import uvicorn

from market.dev_backend import models  # noqa: F401  registers every table on Base.metadata
from market.dev_backend.database import Base, make_session_factory
from market.dev_backend.routers import auth, cart, messages, payments, products, shipping
from market.dev_backend.seed import seed
from market.utils.settings import DEV_DATABASE_URL
from market.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(database_url: str | None = None, with_seed: bool = False) -> FastAPI:
    """
    Development stand-in for the market backend, including a fake
    M-Pesa callback endpoint so payments can be settled by hand.
    """
    url = database_url or DEV_DATABASE_URL
    engine, session_factory = make_session_factory(url)

    logger.info(f"Creating tables {list(Base.metadata.tables.keys())} on {url}")
    Base.metadata.create_all(bind=engine)

    app = FastAPI(title="Farmers Market (dev backend)", version="1.0.0")
    app.state.engine = engine
    app.state.session_factory = session_factory

    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(payments.router)
    app.include_router(shipping.router)
    app.include_router(messages.router)

    if with_seed:
        db = session_factory()
        try:
            seed(db)
        finally:
            db.close()

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(with_seed=True), host="0.0.0.0", port=8080)
