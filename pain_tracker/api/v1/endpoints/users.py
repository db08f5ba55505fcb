"""User profile endpoints."""

from fastapi import APIRouter, File, Form, UploadFile

from pain_tracker.api.v1.forms import read_upload, validate_form
from pain_tracker.dependencies import CurrentUser, ProfileServiceDep, SessionBrokerDep
from pain_tracker.schemas.uploads import FailedUpload, RejectedFile
from pain_tracker.schemas.users import ProfileResponse, ProfileUpdate, ProfileUpdateResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_profile(current_user: CurrentUser, service: ProfileServiceDep):
    """Get current user's profile, creating it on first visit."""
    return await service.get_or_create_profile(current_user)


@router.patch("/me", response_model=ProfileUpdateResponse)
async def update_current_user_profile(
    current_user: CurrentUser,
    service: ProfileServiceDep,
    broker: SessionBrokerDep,
    display_name: str = Form(...),
    profile_picture: UploadFile | None = File(default=None),
):
    """Update display name and, optionally, the profile picture."""
    update = validate_form(ProfileUpdate, display_name=display_name)
    picture = (
        await read_upload(profile_picture)
        if profile_picture is not None and profile_picture.filename
        else None
    )

    outcome = await service.update_profile(current_user, update, picture)
    broker.publish(current_user.uid, outcome.identity)

    return ProfileUpdateResponse(
        profile=outcome.profile,
        rejected_files=[RejectedFile.from_rejection(r) for r in outcome.rejected],
        failed_uploads=[
            FailedUpload(filename=f.filename, message=f.error or "Upload failed")
            for f in outcome.failed
        ],
    )
