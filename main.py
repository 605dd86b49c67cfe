#main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.providers.paystack.validate import validate_payout_provider_startup
from db import close_pool
from middleware import RequestContextMiddleware
from routes.admin_payouts import router as admin_payouts_router
from routes.admin_transactions import router as admin_transactions_router
from routes.health import router as health_router
from routes.payouts import router as payouts_router
from routes.transactions import router as transactions_router

logger = logging.getLogger("bookmarket.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_payout_provider_startup()
    logger.info("Bookmarket API started")
    yield
    # Shutdown
    close_pool()
    logger.info("Bookmarket API stopped")


def create_app() -> FastAPI:
    app = FastAPI(title="Bookmarket API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(RequestContextMiddleware)

    # -----------------------------
    # ROUTERS
    # -----------------------------
    app.include_router(health_router)
    app.include_router(transactions_router)
    app.include_router(admin_transactions_router)
    app.include_router(payouts_router)
    app.include_router(admin_payouts_router)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
