# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# Builds the Client Intake API: logging, CORS, error translation and the
# versioned routers for auth, intake, catalog and health.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.exceptions import (
    IntakeException,
    intake_exception_handler,
    validation_exception_handler,
)
from app.routers import health, clients, catalog
from app.auth import routes as auth_routes

# Root logger; DEBUG=true turns on debug output for every module
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective configuration. The Supabase client is built on first use."""
    logger.info(f"Starting Client Intake API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Uploads: bucket={settings.STORAGE_BUCKET}, "
        f"max {settings.MAX_FILES_PER_CLIENT} files of {settings.MAX_UPLOAD_SIZE_MB}MB"
    )

    yield

    logger.info("Shutting down Client Intake API")


app = FastAPI(
    title="Client Intake API",
    description="""
## Client intake and task dashboard backend

Moderators record new CV/LinkedIn clients together with the services they
ordered, their documents and their payment. Designers and admins use the
same sign-in and are routed to their own pages.

### Roles

| Role | Lands on | Can create clients |
|------|----------|--------------------|
| **moderator** | `/clients/new` | yes |
| **admin** | `/admin` | yes |
| **designer** | `/tasks` | no |

### Creating a client

```bash
curl -X POST http://localhost:8000/api/v1/clients \\
  -H "Authorization: Bearer $TOKEN" \\
  -F full_name="Ahmed Ali" -F whatsapp_number=01012345678 \\
  -F phone_number=01098765432 -F email=a@example.com -F address=Cairo \\
  -F "requested_services[]=svc-1" -F total_amount=150 \\
  -F "files[]=@cv.pdf" -F payment_screenshot=@receipt.png
```

If any step fails after the client row exists, every row and file written
so far is removed before the error is returned.
""",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Current user, role and landing route",
        },
        {
            "name": "Clients",
            "description": "Client intake",
        },
        {
            "name": "Catalog",
            "description": "Services and receiver accounts for the intake form",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# Only production pins the dashboard origins; other environments allow any
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================
# Every error leaves the API as {"error", "code", ...}. Anything not raised
# as an IntakeException is logged with its traceback and reported generically.

app.add_exception_handler(IntakeException, intake_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
    )


# =============================================================================
# Routers
# =============================================================================

API_PREFIX = "/api/v1"

app.include_router(auth_routes.router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
app.include_router(clients.router, prefix=f"{API_PREFIX}/clients", tags=["Clients"])
app.include_router(catalog.router, prefix=API_PREFIX, tags=["Catalog"])
app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])


@app.get("/", tags=["Root"])
async def root():
    """Service name, version and where to look next."""
    return {
        "name": "Client Intake API",
        "version": __version__,
        "docs": "/docs",
        "health": f"{API_PREFIX}/health",
    }
