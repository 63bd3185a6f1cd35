"""KYC review schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from kyc_admin.models.enums import KycStatus


class ProfileSummary(BaseModel):
    """Rider profile fields shown in the review list."""

    model_config = ConfigDict(from_attributes=True)

    fullname: str | None
    pseudo: str | None


class ProfileContact(BaseModel):
    """Rider profile fields shown on a submission."""

    model_config = ConfigDict(from_attributes=True)

    fullname: str | None
    phone: str | None


class KycListRequest(BaseModel):
    """Filter for the review list."""

    status: KycStatus | None = None


class KycSubmissionSummary(BaseModel):
    """Row in the review list."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    status: str
    submitted_at: datetime
    user_profile: ProfileSummary | None = Field(None, serialization_alias="user_profiles")


class KycSubmissionDetail(BaseModel):
    """Full submission for review."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    status: str
    id_front_path: str | None
    id_back_path: str | None
    selfie_path: str | None
    submitted_at: datetime
    reviewed_at: datetime | None
    reviewer_id: str | None
    rejection_reason: str | None
    user_profile: ProfileContact | None = Field(None, serialization_alias="user_profiles")


class KycApproveResponse(BaseModel):
    """Result of an approval."""

    ok: bool = True


class SignedUrlRequest(BaseModel):
    """Request a signed link to a KYC document."""

    path: str = Field(..., min_length=1, max_length=500)
    expires_in: int = Field(3600, gt=0, le=604800)  # at most 7 days


class SignedUrlResponse(BaseModel):
    """Signed link to a KYC document."""

    signed_url: str
    expires_in: int
