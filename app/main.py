"""
Task Tracker API - Main Application
===================================

FastAPI application entry point with middleware configuration
and route registration.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import newrelic.agent

from app.config import settings

# Configure logging for the application (root logger defaults to WARNING)
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.errors import setup_exception_handlers
from app.db.session import close_db, init_db

logger = logging.getLogger(__name__)


# =============================================================================
# New Relic Transaction Enrichment Middleware (Raw ASGI)
# =============================================================================

class NewRelicTransactionMiddleware:
    """
    Raw ASGI middleware that enriches every New Relic transaction with
    custom attributes for filtering and alerting.

    Uses raw ASGI instead of BaseHTTPMiddleware to preserve the async
    context chain New Relic relies on for span propagation.

    Captures: response status, latency, HTTP method, route pattern, and
    the acting user id (when a handler bound one). Without an active
    agent there is no transaction and nothing is recorded.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500  # default until we capture the real one

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000

            txn = newrelic.agent.current_transaction()
            if txn:
                route = scope.get("route")
                route_path = route.path if route else scope.get("path", "unknown")

                newrelic.agent.add_custom_attributes([
                    ("http.method", scope.get("method", "")),
                    ("http.route", route_path),
                    ("http.status_code", status_code),
                    ("http.duration_ms", round(duration_ms, 2)),
                    ("environment", settings.ENVIRONMENT),
                ])

                state = scope.get("state")
                user_id = state.get("user_id") if isinstance(state, dict) else None
                if user_id:
                    newrelic.agent.add_custom_attribute("enduser.id", str(user_id))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database pool on startup and disposes it on shutdown.
    """
    logger.info("Starting Task Tracker API (%s)", settings.ENVIRONMENT)

    if not settings.SESSION_TOKENS_ENABLED:
        logger.warning(
            "Session tokens are disabled: task endpoints trust the "
            "client-asserted user id"
        )

    try:
        await init_db()
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        # Continue startup even if DB fails (for health checks)

    yield

    logger.info("Shutting down Task Tracker API")
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Task Tracker API",
    description="""
## Personal Task Tracker Backend

Date-scoped personal tasks with per-user ownership.

### Features
- **Authentication**: username/password login and registration
- **Tasks**: list by due date, create, read, partial update, delete

### Identity
Task endpoints act on behalf of the user id supplied by the client
(`userId` query/body field or `x-user-id` header). Deployments can
require a matching signed bearer token with `SESSION_TOKENS_ENABLED`.
    """,
    version="1.0.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        404: {"description": "Resource not found"},
        409: {"description": "Resource conflict"},
        500: {"description": "Internal server error"},
    },
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# New Relic transaction enrichment (adds custom attrs to every transaction)
app.add_middleware(NewRelicTransactionMiddleware)

# Setup exception handlers
setup_exception_handlers(app)


# =============================================================================
# Health Check Endpoints
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the current status of the API.
    """
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/", tags=["Health"])
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Task Tracker API",
        "version": "1.0.0",
        "docs": "/docs" if settings.is_development else "Disabled in production",
    }


# =============================================================================
# API Routes
# =============================================================================

from app.api.v1 import auth
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

from app.api.v1 import tasks
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
