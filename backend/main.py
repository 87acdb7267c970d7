# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from core.error_handlers import register_exception_handlers
from core.logging_config import configure_logging
from core.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from core.sentry_config import init_sentry
from models.config import settings
from repositories.database import Base, engine
from routers import appeals_router, reports_router

# Sentry must be initialised before the app is created
init_sentry()
configure_logging(settings.ENVIRONMENT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables on startup only when AUTO_CREATE_DB is set.

    Deployed databases are migrated with `alembic upgrade head`.
    """
    if settings.AUTO_CREATE_DB:
        logger.info("AUTO_CREATE_DB enabled; creating moderation tables")
        Base.metadata.create_all(bind=engine)
    logger.info(
        f"{settings.PROJECT_NAME} API started (environment={settings.ENVIRONMENT})"
    )
    yield


app = FastAPI(title=f"{settings.PROJECT_NAME} API", lifespan=lifespan)

# Last added runs first, so request log lines already carry the correlation id
app.add_middleware(
    RequestLoggingMiddleware,
    slow_request_threshold=settings.SLOW_REQUEST_THRESHOLD,
)
app.add_middleware(CorrelationIdMiddleware)

is_development = settings.ENVIRONMENT == "development"
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if is_development else settings.CORS_ORIGINS,
    allow_credentials=not is_development,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(reports_router.router, prefix="/api")
app.include_router(appeals_router.router, prefix="/api")


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
