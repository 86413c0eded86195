"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from buildcost.core.config import settings
from buildcost.core.errors import DomainError
from buildcost.core.structured_logging import build_log_context, configure_logging
from buildcost.db.session import engine

configure_logging()
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
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from buildcost.core.rate_limit import limiter
from buildcost.core.request_id import REQUEST_ID_HEADER, RequestIdMiddleware


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="BuildCost API",
    description="Multi-tenant construction budgeting API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(RequestIdMiddleware)

# CORS middleware - added last so it wraps everything
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


# ============================================================================
# Error Envelope
# ============================================================================

def _log_context(request: Request) -> dict:
    ctx = getattr(request.state, "ctx", None)
    return build_log_context(
        user_id=str(ctx.user_id) if ctx else None,
        org_id=str(ctx.active_org_id) if ctx and ctx.active_org_id else None,
        request_id=getattr(request.state, "request_id", None),
        route=request.url.path,
        method=request.method,
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(exc.message, extra=_log_context(request))
    else:
        logger.info("%s: %s", exc.kind, exc.message, extra=_log_context(request))
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "kind": "validation_error",
                "message": "Invalid request",
                "details": {"errors": errors},
            }
        },
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra=_log_context(request))
    return JSONResponse(
        status_code=500,
        content={"error": {"kind": "unexpected", "message": "An unexpected error occurred"}},
    )


app.add_exception_handler(DomainError, domain_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unexpected_error_handler)


# ============================================================================
# Routers
# ============================================================================

from buildcost.routers import (
    auth, budgets, catalog, items, organizations, projects, unit_price_analyses, users,
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(organizations.router, prefix="/organizations", tags=["organizations"])

# Component library
app.include_router(catalog.materials_router, prefix="/materials", tags=["components"])
app.include_router(catalog.labor_router, prefix="/labor", tags=["components"])
app.include_router(catalog.equipment_router, prefix="/equipment", tags=["components"])

app.include_router(
    unit_price_analyses.router, prefix="/unit-price-analyses", tags=["unit-price-analyses"]
)
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
app.include_router(items.router, prefix="/items", tags=["items"])


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
