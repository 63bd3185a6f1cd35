"""KYC submission and history models."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from kyc_admin.database import Base
from kyc_admin.models.enums import KycStatus
from kyc_admin.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class KycSubmission(Base, UUIDPrimaryKeyMixin):
    """An identity-verification submission awaiting admin review."""

    __tablename__ = "livreur_kyc_submissions"

    user_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=KycStatus.PENDING.value, index=True)

    # Object paths inside the KYC storage bucket
    id_front_path = Column(String(500), nullable=True)
    id_back_path = Column(String(500), nullable=True)
    selfie_path = Column(String(500), nullable=True)

    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewer_id = Column(String(36), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Relationships
    user_profile = relationship("UserProfile", backref="kyc_submissions")
    history = relationship("KycHistory", back_populates="submission", cascade="all, delete-orphan")


class KycHistory(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Audit trail of review actions on a submission."""

    __tablename__ = "livreur_kyc_history"

    submission_id = Column(
        String(36), ForeignKey("livreur_kyc_submissions.id"), nullable=False, index=True
    )
    action = Column(String(20), nullable=False)
    actor_id = Column(String(36), nullable=True)

    # Relationships
    submission = relationship("KycSubmission", back_populates="history")
