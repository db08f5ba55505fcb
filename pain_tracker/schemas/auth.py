"""Authentication schemas."""

from pydantic import BaseModel, EmailStr, Field

from pain_tracker.schemas.uploads import FailedUpload, RejectedFile


class Identity(BaseModel):
    """The signed-in user as known to Firebase Auth."""

    uid: str
    email: EmailStr | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False


class SignInRequest(BaseModel):
    """Email/password login form."""

    email: EmailStr
    password: str = Field(..., min_length=6)


class RegisterForm(SignInRequest):
    """Registration form; the optional picture travels as a separate file part."""

    display_name: str = Field(..., min_length=2, max_length=50)


class PasswordResetRequest(BaseModel):
    """Password reset form."""

    email: EmailStr


class TokenRefresh(BaseModel):
    """Token refresh request schema."""

    refresh_token: str


class SessionResponse(BaseModel):
    """Firebase session issued after sign-in or refresh."""

    id_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    identity: Identity


class RegisterResponse(BaseModel):
    """New account session plus the fate of the profile picture."""

    session: SessionResponse
    rejected_files: list[RejectedFile] = []
    failed_uploads: list[FailedUpload] = []
