import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from brokerage.core.config import settings
from brokerage.api import settlements, revenue, commissions, collaborators
from brokerage.api import payroll as payroll_api

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def init_database():
    """Create tables for the ledger models if they don't exist yet."""
    from brokerage.core.database import engine, Base
    import brokerage.models  # noqa: F401  register models on Base

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    yield


# Disable API docs in production
docs_url = "/docs" if settings.ENVIRONMENT != "production" else None
redoc_url = "/redoc" if settings.ENVIRONMENT != "production" else None

app = FastAPI(
    title=settings.APP_NAME,
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "brokerage-back-office", "version": "1.0.0"}


app.include_router(settlements.router)
app.include_router(payroll_api.router)
app.include_router(revenue.router)
app.include_router(commissions.router)
app.include_router(collaborators.router)
