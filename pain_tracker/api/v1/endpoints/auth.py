"""Authentication endpoints."""

import json
from collections.abc import AsyncGenerator

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from pain_tracker.api.v1.forms import read_upload, validate_form
from pain_tracker.core.identity import IdentitySession
from pain_tracker.dependencies import AuthServiceDep, CurrentUser, SessionBrokerDep
from pain_tracker.schemas.auth import (
    Identity,
    PasswordResetRequest,
    RegisterForm,
    RegisterResponse,
    SessionResponse,
    SignInRequest,
    TokenRefresh,
)
from pain_tracker.schemas.uploads import FailedUpload, RejectedFile

router = APIRouter()


def _session_response(session: IdentitySession) -> SessionResponse:
    return SessionResponse(
        id_token=session.id_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        identity=session.identity,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(
    auth_service: AuthServiceDep,
    email: str = Form(...),
    password: str = Form(...),
    display_name: str = Form(...),
    profile_picture: UploadFile | None = File(default=None),
) -> RegisterResponse:
    """
    Create an email/password account with an optional profile picture.

    The picture goes through the same size and type checks as the settings
    form; if it is refused the account is still created without a photo.
    """
    form = validate_form(RegisterForm, email=email, password=password, display_name=display_name)
    picture = (
        await read_upload(profile_picture)
        if profile_picture is not None and profile_picture.filename
        else None
    )

    outcome = await auth_service.register(form, picture)

    return RegisterResponse(
        session=_session_response(outcome.session),
        rejected_files=[RejectedFile.from_rejection(r) for r in outcome.rejected],
        failed_uploads=[
            FailedUpload(filename=f.filename, message=f.error or "Upload failed")
            for f in outcome.failed
        ],
    )


@router.post(
    "/login",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Email/password sign-in",
)
async def login(request: SignInRequest, auth_service: AuthServiceDep) -> SessionResponse:
    """Sign in and return a Firebase session."""
    session = await auth_service.sign_in(request.email, request.password)
    return _session_response(session)


@router.post(
    "/refresh",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh ID token",
)
async def refresh_token(request: TokenRefresh, auth_service: AuthServiceDep) -> SessionResponse:
    session = await auth_service.refresh(request.refresh_token)
    return _session_response(session)


@router.post(
    "/password-reset",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send password reset email",
)
async def password_reset(
    request: PasswordResetRequest, auth_service: AuthServiceDep
) -> dict[str, str]:
    await auth_service.send_password_reset(request.email)
    return {"message": "Check your email for password reset instructions."}


@router.get(
    "/session",
    response_model=Identity,
    summary="Current session",
)
async def current_session(current_user: CurrentUser) -> Identity:
    return current_user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out and revoke refresh tokens",
)
async def logout(current_user: CurrentUser, auth_service: AuthServiceDep) -> None:
    await auth_service.sign_out(current_user)


def _sse(identity: Identity | None) -> str:
    payload = identity.model_dump(mode="json") if identity is not None else None
    return f"event: session\ndata: {json.dumps(payload)}\n\n"


@router.get(
    "/session/events",
    summary="Stream session changes",
    response_class=StreamingResponse,
)
async def session_events(
    request: Request,
    current_user: CurrentUser,
    broker: SessionBrokerDep,
) -> StreamingResponse:
    """
    Server-sent events carrying the caller's identity, or null once signed out.

    The first event is the current identity. The stream ends after a sign-out
    event or when the client disconnects.
    """
    subscription = broker.subscribe(current_user.uid)

    async def stream() -> AsyncGenerator[str, None]:
        async with subscription:
            yield _sse(current_user)
            async for identity in subscription:
                if await request.is_disconnected():
                    break
                yield _sse(identity)
                if identity is None:
                    break

    return StreamingResponse(stream(), media_type="text/event-stream")
