"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ngurra_pathways import __version__
from ngurra_pathways.core.database import init_db
from ngurra_pathways.core.logging_config import get_logger, setup_logging
from ngurra_pathways.core.monitoring import initialize_logfire

from .api.v1 import (
    admin,
    analytics,
    applications,
    auth,
    connections,
    feed,
    health,
    jobs,
    mentorship,
    messages,
    notifications,
    realtime,
    subscriptions,
    uploads,
    users,
    webhooks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Tables are only created here when DATABASE_AUTO_CREATE is set; otherwise
    the schema is managed by Alembic.
    """
    # Startup
    try:
        logger.info("Starting up Ngurra Pathways API...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down Ngurra Pathways API...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Ngurra Pathways API

    Backend for the Ngurra Pathways community platform: job listings and
    applications, direct messaging, mentorship scheduling, a social feed,
    employer subscriptions and admin analytics.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users", tags=["users"])
app.include_router(jobs.router, prefix=f"{constant.API_V1_STR}/jobs", tags=["jobs"])
app.include_router(applications.router, prefix=f"{constant.API_V1_STR}/applications", tags=["applications"])
app.include_router(messages.router, prefix=f"{constant.API_V1_STR}/messages", tags=["messages"])
app.include_router(feed.router, prefix=f"{constant.API_V1_STR}/feed", tags=["feed"])
app.include_router(connections.router, prefix=f"{constant.API_V1_STR}/connections", tags=["connections"])
app.include_router(mentorship.router, prefix=f"{constant.API_V1_STR}/mentorship", tags=["mentorship"])
app.include_router(subscriptions.router, prefix=f"{constant.API_V1_STR}/subscriptions", tags=["subscriptions"])
app.include_router(webhooks.router, prefix=f"{constant.API_V1_STR}/webhooks", tags=["webhooks"])
app.include_router(uploads.router, prefix=f"{constant.API_V1_STR}/uploads", tags=["uploads"])
app.include_router(notifications.router, prefix=f"{constant.API_V1_STR}/notifications", tags=["notifications"])
app.include_router(admin.router, prefix=f"{constant.API_V1_STR}/admin", tags=["admin"])
app.include_router(analytics.router, prefix=f"{constant.API_V1_STR}/analytics", tags=["analytics"])
app.include_router(realtime.router, prefix=constant.API_V1_STR, tags=["realtime"])
