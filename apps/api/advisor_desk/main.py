"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from advisor_desk.core.config import settings
from advisor_desk.core.permissions import PermissionDeniedError
from advisor_desk.core.rate_limit import limiter
from advisor_desk.core.structured_logging import build_log_context
from advisor_desk.db.session import engine
from advisor_desk.routers import (
    activity,
    auth,
    calendar,
    clients,
    files,
    history,
    integrations,
    internal,
    meetings,
    payments,
    users,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Advisor Desk API",
    description="Multi-tenant scheduling desk for advisory firms",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    """Service-level permission checks surface as 403."""
    logger.info(
        "Permission denied: %s",
        exc.permission,
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    return JSONResponse(status_code=403, content={"detail": str(exc)})


# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["Content-Disposition"],
)

# ============================================================================
# Routers
# ============================================================================

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])

# Mixed paths: /clients/... and /notes/{id}
app.include_router(clients.router, tags=["clients"])
app.include_router(meetings.router, tags=["meetings"])
app.include_router(history.router, tags=["history"])
app.include_router(payments.router, tags=["payments"])
app.include_router(calendar.router, tags=["calendar"])
app.include_router(activity.router, tags=["activity"])

app.include_router(integrations.router, prefix="/integrations", tags=["integrations"])
app.include_router(files.router, prefix="/files", tags=["files"])

# Internal endpoints (scheduled jobs, OAuth callback - protected by INTERNAL_SECRET)
app.include_router(internal.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
