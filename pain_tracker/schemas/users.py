"""User profile schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from pain_tracker.schemas.uploads import FailedUpload, RejectedFile


class ProfileUpdate(BaseModel):
    """Settings form; the optional picture travels as a separate file part."""

    display_name: str = Field(..., min_length=2, max_length=50)


class ProfileResponse(BaseModel):
    """Profile document from the ``users`` collection."""

    id: str
    email: EmailStr | None = None
    display_name: str = ""
    photo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdateResponse(BaseModel):
    """Updated profile plus the fate of the picture, if one was sent."""

    profile: ProfileResponse
    rejected_files: list[RejectedFile] = []
    failed_uploads: list[FailedUpload] = []
