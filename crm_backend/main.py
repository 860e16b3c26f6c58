"""
Tenant CRM Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from crm_backend.config import settings
from crm_backend.database import init_db
from crm_backend.core.exceptions import CRMException
from crm_backend.core.logging_config import configure_logging

# Import all API routers
from crm_backend.api import (
    auth, organizations, companies, contacts, leads, lead_sources,
    tags, tasks, notifications, dashboard
)

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title="Tenant CRM API",
    description="Multi-tenant CRM core: companies, contacts, leads and tasks",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CRMException)
async def crm_exception_handler(request: Request, exc: CRMException):
    """Render domain errors as {"detail": message} with their HTTP status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include all routers
app.include_router(auth.router)
app.include_router(organizations.router)
app.include_router(companies.router)
app.include_router(contacts.router)
app.include_router(leads.router)
app.include_router(lead_sources.router)
app.include_router(tags.router)
app.include_router(tasks.router)
app.include_router(notifications.router)
app.include_router(dashboard.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Tenant CRM API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": "1.0.0"
    }
