"""User profile model."""

from sqlalchemy import Column, String

from kyc_admin.database import Base
from kyc_admin.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class UserProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Public profile of a rider, joined into KYC review listings."""

    __tablename__ = "user_profiles"

    fullname = Column(String(255), nullable=True)
    pseudo = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
