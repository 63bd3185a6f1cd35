"""KYC submission review operations."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from kyc_admin.models import KycHistory, KycSubmission
from kyc_admin.models.enums import KycAction, KycStatus
from kyc_admin.services.errors import SubmissionNotFoundError

logger = logging.getLogger(__name__)

KYC_APPROVED_TITLE = "KYC approuvé"
KYC_APPROVED_BODY = "Votre vérification KYC a été approuvée 🎉"
KYC_APPROVED_DATA = {"type": "kyc_approved"}


class KycService:
    """Service for listing, reading and approving KYC submissions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_submissions(self, status: KycStatus | None = None) -> list[KycSubmission]:
        """List submissions, newest first, optionally filtered by status."""
        query = self.db.query(KycSubmission).options(joinedload(KycSubmission.user_profile))
        if status is not None:
            query = query.filter(KycSubmission.status == status.value)
        return query.order_by(KycSubmission.submitted_at.desc()).all()

    def get_submission(self, submission_id: str) -> KycSubmission:
        """Get one submission with its rider profile."""
        submission = (
            self.db.query(KycSubmission)
            .options(joinedload(KycSubmission.user_profile))
            .filter(KycSubmission.id == submission_id)
            .first()
        )
        if not submission:
            raise SubmissionNotFoundError(f"KYC submission {submission_id} not found")
        return submission

    def approve_submission(self, submission_id: str, reviewer_id: str | None = None) -> KycSubmission:
        """
        Mark a submission approved and record the action in its history.

        The history entry is written in a savepoint: if it fails the error is
        logged and the approval is still committed.
        """
        submission = self.get_submission(submission_id)
        submission.status = KycStatus.APPROVED.value
        submission.reviewed_at = datetime.now(UTC)
        submission.reviewer_id = reviewer_id
        self.db.flush()

        self._record_history(submission.id, KycAction.APPROVED, reviewer_id)

        self.db.commit()
        self.db.refresh(submission)
        logger.info(f"Approved KYC submission {submission.id} for user {submission.user_id}")
        return submission

    def _record_history(self, submission_id: str, action: KycAction, actor_id: str | None) -> None:
        try:
            with self.db.begin_nested():
                self.db.add(
                    KycHistory(submission_id=submission_id, action=action.value, actor_id=actor_id)
                )
        except SQLAlchemyError as e:
            logger.error(f"History insert error for submission {submission_id}: {e}")
