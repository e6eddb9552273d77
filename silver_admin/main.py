"""
Silver Admin Backend
FastAPI application entry point

- Rate limiting with SlowAPI
- Exception handlers rendering the standard response envelope
- Health endpoint with DB ping
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text

from silver_admin.api.routes import admin_orders, admins, auth, inventory
from silver_admin.core.config import settings
from silver_admin.core.database import AsyncSessionLocal, Base, engine
from silver_admin.core.error_handler import register_exception_handlers
from silver_admin.core.rate_limit import limiter
from silver_admin.core.responses import api_response, success

# Import models to register them with SQLAlchemy
from silver_admin import models  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables for local development; production schemas are migrated separately."""
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Development database tables ensured")

    logger.info("%s started (environment=%s)", settings.APP_NAME, settings.ENVIRONMENT)

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="Admin API for catalog inventory, orders and staff accounts",
    version="1.0.0",
)

app.state.limiter = limiter
register_exception_handlers(app)

# Applies RATE_LIMIT_DEFAULT to every route without its own @limiter.limit
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(admins.router, prefix="/api", tags=["Admins"])
app.include_router(admin_orders.router, prefix="/api", tags=["Admin - Orders"])
app.include_router(inventory.router, prefix="/api", tags=["Admin - Inventory"])


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check with an actual DB ping. Returns 503 if the database is unreachable."""
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database ping failed: %s", type(e).__name__)
        return api_response(503, "Service unhealthy", {"database": "unreachable"})

    return success("Service healthy", {"database": "connected"})
