"""Pydantic schemas for API requests and responses."""

from kyc_admin.schemas.kyc import (
    KycApproveResponse,
    KycListRequest,
    KycSubmissionDetail,
    KycSubmissionSummary,
    SignedUrlRequest,
    SignedUrlResponse,
)

__all__ = [
    "KycListRequest",
    "KycSubmissionSummary",
    "KycSubmissionDetail",
    "KycApproveResponse",
    "SignedUrlRequest",
    "SignedUrlResponse",
]
