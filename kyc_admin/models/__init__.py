"""SQLAlchemy models."""

from kyc_admin.models.fcm_token import UserFcmToken
from kyc_admin.models.kyc_submission import KycHistory, KycSubmission
from kyc_admin.models.user_profile import UserProfile

__all__ = [
    "UserProfile",
    "KycSubmission",
    "KycHistory",
    "UserFcmToken",
]
