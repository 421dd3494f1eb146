"""
Budget Ledger: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from budget_ledger.config import configure_logging, get_settings
from budget_ledger.api.accounts import router as accounts_router
from budget_ledger.api.health import router as health_router
from budget_ledger.api.transactions import router as transactions_router
from budget_ledger.models.base import Base, SessionLocal, engine
from budget_ledger.services.ledger_client import LedgerClient

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


def init_db() -> None:
    """
    Prepare the database for use.

    Creates missing tables when AUTO_CREATE_SCHEMA is enabled
    (otherwise the schema is managed by Alembic) and makes sure
    the default accounts exist.
    """
    if settings.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine)
    LedgerClient(SessionLocal).ensure_default_accounts()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(
        "%s %s starting (%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Envelope budgeting ledger",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "budget_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
