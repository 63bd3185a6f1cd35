"""Device registration token model for push delivery."""

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from kyc_admin.database import Base
from kyc_admin.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class UserFcmToken(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A registration token for one installed app instance.

    Tokens are registered by the mobile app; a non-null ``revoked_at`` excludes
    the token from delivery.
    """

    __tablename__ = "user_fcm_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_user_fcm_token"),)

    user_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False, index=True)
    token = Column(String(500), nullable=False)
    platform = Column(String(20), nullable=True)  # 'android', 'ios'
    revoked_at = Column(DateTime(timezone=True), nullable=True)
