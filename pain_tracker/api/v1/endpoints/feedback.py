"""Feedback endpoints."""

from fastapi import APIRouter, File, Form, UploadFile, status

from pain_tracker.api.v1.forms import read_uploads, validate_form
from pain_tracker.dependencies import CurrentUser, FeedbackServiceDep
from pain_tracker.schemas.feedback import FeedbackCreate, FeedbackResponse
from pain_tracker.schemas.uploads import FailedUpload, RejectedFile

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    current_user: CurrentUser,
    service: FeedbackServiceDep,
    feedback: str = Form(...),
    attachments: list[UploadFile] | None = File(default=None),
):
    """
    Submit feedback with up to three screenshots.

    Oversized, non-image and surplus files are dropped with a reason; files
    that fail to upload are listed and the feedback is saved without them.
    """
    form = validate_form(FeedbackCreate, feedback=feedback)
    files = await read_uploads(attachments)

    outcome = await service.submit(current_user, form, files)

    return FeedbackResponse(
        id=outcome.feedback_id,
        attachments=outcome.attachments,
        rejected_files=[RejectedFile.from_rejection(r) for r in outcome.rejected],
        failed_uploads=[
            FailedUpload(filename=f.filename, message=f.error or "Upload failed")
            for f in outcome.failed
        ],
    )
