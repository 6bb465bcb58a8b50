import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import SessionLocal, init_db
from app.routes.health import router as health_router
from app.routes.past_orders import router as past_orders_router
from app.routes.payments import router as payments_router
from app.routes.register_sessions import router as register_sessions_router
from app.services.seed import seed_demo


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Only seed in development or when explicitly requested
    if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
        with SessionLocal() as db:
            seed_demo(db)
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Restaurant POS API", version="0.1.0", lifespan=lifespan)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health_router, tags=["health"])
    app.include_router(register_sessions_router, prefix="/register-sessions", tags=["register-sessions"])
    app.include_router(payments_router, prefix="/payments", tags=["payments"])
    app.include_router(past_orders_router, prefix="/past-orders", tags=["past-orders"])

    return app


app = create_app()
