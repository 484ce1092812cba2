"""
Sales CRM Platform API - Main Application.

FastAPI application with CORS enabled for frontend communication.
The Supabase-backed collaborators are created once in the lifespan handler.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config import configure_logging
from domain.errors import (
    AuthorizationError,
    CRMError,
    InvalidTransitionError,
    NotFoundError,
    NotificationDispatchError,
    StoreError,
    ValidationError,
)
from repositories.client import get_supabase
from repositories.identity import SupabaseIdentityProvider
from repositories.supabase_store import SupabaseEntityStore
from services.settings_service import SettingsStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    client = await get_supabase()
    app.state.store = SupabaseEntityStore(client)
    app.state.identity_provider = SupabaseIdentityProvider(client)
    app.state.settings_store = SettingsStore(app.state.store)
    await app.state.settings_store.load()
    logger.info("CRM API started", extra={"version": __version__})
    yield


# Create FastAPI application
app = FastAPI(
    title="Sales CRM Platform API",
    description="REST API for prospects, clients, sales and commissions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS - Allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain error -> HTTP status. Order matters: most specific first.
_ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (AuthorizationError, 403),
    (NotificationDispatchError, 502),
    (StoreError, 503),
)


@app.exception_handler(CRMError)
async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    status_code = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    detail = str(exc)
    if isinstance(exc, StoreError):
        detail = f"{detail}. Please retry."
        logger.error("Store write failed", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "sales-crm-platform-api",
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Sales CRM Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# Import and include routers
from api.routers import (  # noqa: E402
    access_codes,
    auth,
    clients,
    dashboard,
    notifications,
    prospects,
    remote_prospects,
    sales,
    session,
    settings,
    users,
)

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(users.router, prefix="/api/v1", tags=["Users"])
app.include_router(access_codes.router, prefix="/api/v1", tags=["Access Code"])
app.include_router(prospects.router, prefix="/api/v1", tags=["Prospects"])
app.include_router(remote_prospects.router, prefix="/api/v1", tags=["Remote Prospects"])
app.include_router(clients.router, prefix="/api/v1", tags=["Clients"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(notifications.router, prefix="/api/v1", tags=["Notifications"])
app.include_router(settings.router, prefix="/api/v1", tags=["Settings"])
app.include_router(dashboard.router, prefix="/api/v1", tags=["Dashboard"])
app.include_router(session.router, prefix="/api/v1", tags=["Session"])
