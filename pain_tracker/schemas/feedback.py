"""Feedback schemas."""

from pydantic import BaseModel, Field

from pain_tracker.schemas.uploads import FailedUpload, RejectedFile


class FeedbackCreate(BaseModel):
    """Feedback form text; attachments travel as file parts."""

    feedback: str = Field(
        ...,
        min_length=10,
        description="Feedback must be at least 10 characters long",
    )


class FeedbackResponse(BaseModel):
    """Outcome of one submission. Feedback is never readable afterwards."""

    id: str
    attachments: list[str]
    rejected_files: list[RejectedFile] = []
    failed_uploads: list[FailedUpload] = []
