"""Feedback submission service."""

from dataclasses import dataclass, field
from typing import Any

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import SERVER_TIMESTAMP
from structlog import get_logger

from pain_tracker.config import settings
from pain_tracker.core.exceptions import StoreException
from pain_tracker.core.uploads import AttachmentCandidate, AttachmentQueue, AttachmentRejection
from pain_tracker.schemas.auth import Identity
from pain_tracker.schemas.feedback import FeedbackCreate
from pain_tracker.services.storage_service import (
    StorageService,
    UploadOutcome,
    feedback_attachment_path,
)

logger = get_logger(__name__)

FEEDBACK_COLLECTION = "feedback"


@dataclass
class FeedbackOutcome:
    feedback_id: str
    attachments: list[str]
    rejected: list[AttachmentRejection] = field(default_factory=list)
    failed: list[UploadOutcome] = field(default_factory=list)


class FeedbackService:
    """Service for feedback submissions.

    Records are write-only for clients; reading them back happens outside the
    API (see ``scripts/export_feedback.py``).
    """

    def __init__(self, db: Any, storage: StorageService):
        """Initialize with the Firestore client and blob storage."""
        self.db = db
        self.storage = storage

    async def submit(
        self,
        identity: Identity,
        feedback: FeedbackCreate,
        files: list[AttachmentCandidate] | None = None,
    ) -> FeedbackOutcome:
        """
        Upload the accepted attachments and store the feedback record.

        Every accepted file gets its own upload attempt. Failed uploads are
        reported and skipped; the record is created with the URLs that made
        it, even when that is none of them.

        Raises:
            StoreException: If the feedback document cannot be written
        """
        queue = AttachmentQueue(
            limit=settings.max_feedback_attachments, max_bytes=self.storage.max_bytes
        )
        rejected = queue.offer(files or [])
        for rejection in rejected:
            logger.info(
                "attachment_rejected",
                uid=identity.uid,
                filename=rejection.filename,
                reason=rejection.reason.value,
            )

        outcomes = await self.storage.upload_each(
            identity.uid, queue.files, feedback_attachment_path
        )
        attachment_urls = [outcome.url for outcome in outcomes if outcome.url is not None]

        try:
            _, doc_ref = await self.db.collection(FEEDBACK_COLLECTION).add(
                {
                    "userId": identity.uid,
                    "userEmail": identity.email,
                    "feedback": feedback.feedback,
                    "attachments": attachment_urls,
                    "createdAt": SERVER_TIMESTAMP,
                }
            )
        except GoogleAPICallError as e:
            logger.error("feedback_submit_failed", uid=identity.uid, error=str(e))
            raise StoreException("Failed to submit feedback. Please try again.") from e

        logger.info(
            "feedback_submitted",
            uid=identity.uid,
            feedback_id=doc_ref.id,
            attachments=len(attachment_urls),
            failed_uploads=len(outcomes) - len(attachment_urls),
        )
        return FeedbackOutcome(
            feedback_id=doc_ref.id,
            attachments=attachment_urls,
            rejected=rejected,
            failed=[outcome for outcome in outcomes if not outcome.ok],
        )
