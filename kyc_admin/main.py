"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kyc_admin.api import kyc
from kyc_admin.config import get_settings
from kyc_admin.database import init_db
from kyc_admin.services.fcm_auth import CredentialSigner

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Refuse to serve without a usable push identity
    identity = settings.service_identity()
    CredentialSigner(identity)
    logger.info(f"Push delivery configured for project {identity.project_id}")
    init_db()
    yield


app = FastAPI(
    title="KYC Admin API",
    description="Review of rider identity-verification submissions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Register routers
app.include_router(kyc.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
