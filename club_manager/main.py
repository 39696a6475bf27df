from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from club_manager.core.limits import limiter, rate_limit_handler
from club_manager.core.init_db import init_database
from club_manager.core.error_handlers import setup_exception_handlers
from club_manager.core.database import db_manager
from club_manager.core.middleware import setup_middleware
from club_manager.core.logging_utils import (
    setup_logging,
    get_logger,
    log_business_event,
    error_tracker,
)
from club_manager.core.config import (
    validate_config,
    APP_NAME,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    ENVIRONMENT,
    LOG_LEVEL,
    LOG_FORMAT,
)

from club_manager.clubs.routers import admin
from club_manager.clubs.routers import auth
from club_manager.clubs.routers import clubs
from club_manager.clubs.routers import comites
from club_manager.clubs.routers import cotisations
from club_manager.clubs.routers import mandats
from club_manager.clubs.routers import members
from club_manager.clubs.routers import users
from club_manager.finance.routers import budgets
from club_manager.finance.routers import reports
from club_manager.finance.routers import rubriques
from club_manager.events.routers import evenements
from club_manager.gala.routers import galas
from club_manager.gala.routers import seating
from club_manager.gala.routers import tickets
from club_manager.gala.routers import raffle
from club_manager.meetings.routers import reunions
from club_manager.meetings.routers import attendance

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""

    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        validate_config()
        logger.info("✅ Configuration validated")

        await db_manager.check_connection()
        logger.info("✅ Database connection established")

        await init_database()
        logger.info("✅ Database initialized")

        log_business_event(
            "application_started",
            "system",
            APP_NAME,
            {"version": APP_VERSION, "environment": ENVIRONMENT},
        )

        logger.info("🚀 Application startup completed")

    except Exception as e:
        logger.error(f"❌ Application startup failed: {str(e)}")
        error_tracker.track_error(
            "STARTUP_ERROR",
            str(e),
            {"component": "application_startup", "version": APP_VERSION},
        )
        raise

    yield

    logger.info("🛑 Shutting down application...")
    await db_manager.close_connections()
    logger.info("👋 Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    description="Club management: members, mandats, budgets, events and galas",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "X-Page", "X-Page-Size", "X-Total-Pages"],
)

setup_exception_handlers(app)

setup_middleware(
    app,
    {
        "slow_request_threshold": 5.0,
        "exclude_paths": [
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    },
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

API_PREFIX = "/api"

app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(clubs.router, prefix=API_PREFIX)
app.include_router(members.router, prefix=API_PREFIX)
app.include_router(mandats.router, prefix=API_PREFIX)
app.include_router(comites.fonctions_router, prefix=API_PREFIX)
app.include_router(comites.router, prefix=API_PREFIX)
app.include_router(cotisations.router, prefix=API_PREFIX)
app.include_router(admin.router, prefix=API_PREFIX)

app.include_router(budgets.types_router, prefix=API_PREFIX)
app.include_router(budgets.router, prefix=API_PREFIX)
app.include_router(rubriques.router, prefix=API_PREFIX)
app.include_router(rubriques.realisations_router, prefix=API_PREFIX)
app.include_router(reports.router, prefix=API_PREFIX)

app.include_router(evenements.router, prefix=API_PREFIX)

app.include_router(galas.router, prefix=API_PREFIX)
app.include_router(seating.router, prefix=API_PREFIX)
app.include_router(tickets.router, prefix=API_PREFIX)
app.include_router(raffle.router, prefix=API_PREFIX)

app.include_router(reunions.types_router, prefix=API_PREFIX)
app.include_router(reunions.router, prefix=API_PREFIX)
app.include_router(attendance.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "version": APP_VERSION}
