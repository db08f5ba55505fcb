"""Schemas reporting what happened to uploaded files."""

from pydantic import BaseModel

from pain_tracker.core.uploads import AttachmentRejection, RejectionReason


class RejectedFile(BaseModel):
    """A file dropped by the attachment guard before any upload."""

    filename: str
    reason: RejectionReason
    message: str

    @classmethod
    def from_rejection(cls, rejection: AttachmentRejection) -> "RejectedFile":
        return cls(filename=rejection.filename, reason=rejection.reason, message=rejection.message)


class FailedUpload(BaseModel):
    """A file that passed the guard but could not be stored."""

    filename: str
    message: str
