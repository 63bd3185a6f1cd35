"""KYC review API endpoints for administrators."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from kyc_admin.api.dependencies import get_kyc_service, get_storage_service
from kyc_admin.models import KycSubmission
from kyc_admin.models.enums import KycStatus
from kyc_admin.schemas.kyc import (
    KycApproveResponse,
    KycListRequest,
    KycSubmissionDetail,
    KycSubmissionSummary,
    SignedUrlRequest,
    SignedUrlResponse,
)
from kyc_admin.services.errors import StorageError, SubmissionNotFoundError
from kyc_admin.services.kyc_service import KycService
from kyc_admin.services.storage_service import StorageService
from kyc_admin.tasks.notifications import send_kyc_approved_notification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin/kyc", tags=["kyc"])


@router.get("", response_model=list[KycSubmissionSummary])
async def list_submissions(
    service: Annotated[KycService, Depends(get_kyc_service)],
    status_filter: Annotated[KycStatus | None, Query(alias="status")] = None,
) -> list[KycSubmission]:
    """List KYC submissions, newest first."""
    return service.list_submissions(status_filter)


@router.post("/list", response_model=list[KycSubmissionSummary])
async def list_submissions_by_body(
    service: Annotated[KycService, Depends(get_kyc_service)],
    request: KycListRequest | None = None,
) -> list[KycSubmission]:
    """List KYC submissions with an optional status filter in the request body."""
    return service.list_submissions(request.status if request else None)


@router.post("/signed-url", response_model=SignedUrlResponse)
async def create_signed_url(
    request: SignedUrlRequest,
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> SignedUrlResponse:
    """Issue a short-lived signed link to an uploaded KYC document."""
    try:
        signed_url = await storage.create_signed_url(request.path, request.expires_in)
    except StorageError as e:
        # Unreachable storage is a gateway failure; refusals are the caller's
        status_code = (
            status.HTTP_502_BAD_GATEWAY if e.status_code is None else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(status_code=status_code, detail=str(e)) from e

    return SignedUrlResponse(signed_url=signed_url, expires_in=request.expires_in)


@router.get("/{submission_id}", response_model=KycSubmissionDetail)
async def get_submission(
    submission_id: str,
    service: Annotated[KycService, Depends(get_kyc_service)],
) -> KycSubmission:
    """Get a KYC submission with the rider's contact details."""
    try:
        return service.get_submission(submission_id)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("/{submission_id}/approve", response_model=KycApproveResponse)
async def approve_submission(
    submission_id: str,
    service: Annotated[KycService, Depends(get_kyc_service)],
) -> KycApproveResponse:
    """Approve a KYC submission and notify the rider.

    The notification is queued after the approval is committed; a failure to
    queue it is logged and does not affect the response.
    """
    try:
        submission = service.approve_submission(submission_id)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    try:
        send_kyc_approved_notification.delay(submission.user_id)
    except Exception as e:
        logger.error(f"Failed to queue approval notification for {submission.id}: {e}")

    return KycApproveResponse(ok=True)
