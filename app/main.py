"""
Events CRM - Main Application Entry Point
Role-based access control and field masking over the CRM API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlmodel import Session
import structlog

from app.core.config import get_settings
from app.core.database import engine, init_db
from app.core.errors import register_exception_handlers
from app.core.log_config import configure_logging
from app.api import access_rules, auth, contacts, invoices, leads
from app.services.access_rules import AccessRuleStore

configure_logging()

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Events CRM backend")
    init_db()

    if settings.SEED_ACCESS_RULES_ON_STARTUP:
        with Session(engine) as session:
            AccessRuleStore(session).seed_defaults()

    if settings.ACCESS_RULES_FAIL_OPEN:
        logger.warning("ACCESS_RULES_FAIL_OPEN is enabled: features without access rules are allowed")

    yield

    # Shutdown
    logger.info("Shutting down Events CRM backend")


# Create FastAPI application
app = FastAPI(
    title="Events CRM API",
    description="CRM backend with role-based access control and response masking",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
prefix = settings.API_V1_PREFIX
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
app.include_router(access_rules.router, prefix=f"{prefix}/access-rules", tags=["access-rules"])
app.include_router(leads.router, prefix=f"{prefix}/leads", tags=["leads"])
app.include_router(contacts.router, prefix=f"{prefix}/contacts", tags=["contacts"])
app.include_router(invoices.router, prefix=f"{prefix}/invoices", tags=["invoices"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "events-crm-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Events CRM API",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
