"""FastAPI dependencies for services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from kyc_admin.database import get_db
from kyc_admin.services.kyc_service import KycService
from kyc_admin.services.storage_service import StorageService


def get_kyc_service(
    db: Annotated[Session, Depends(get_db)],
) -> KycService:
    """Get KYC review service with dependencies."""
    return KycService(db)


def get_storage_service() -> StorageService:
    """Get storage service instance."""
    return StorageService()
