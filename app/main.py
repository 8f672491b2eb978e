import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.balances.router import router as balances_router
from app.api.v1.bank_settings.router import router as bank_settings_router
from app.api.v1.fee_structures.router import router as fee_structures_router
from app.api.v1.payments.router import router as payments_router
from app.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Fee Ledger Service")

    # CORS: allow the school frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fee_structures_router)
    app.include_router(payments_router)
    app.include_router(balances_router)
    app.include_router(bank_settings_router)

    return app


app = create_app()
