"""Firebase Auth access: Admin SDK for account management, REST for sign-in."""

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError
from structlog import get_logger

from pain_tracker.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    ServiceUnavailableException,
    StoreException,
    UnauthorizedException,
)
from pain_tracker.core.firebase import get_firebase_app, verify_firebase_token
from pain_tracker.schemas.auth import Identity

logger = get_logger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Identity Toolkit error codes surfaced to the auth forms
_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "Invalid email or password",
    "INVALID_PASSWORD": "Invalid email or password",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password",
    "INVALID_EMAIL": "Invalid email address",
    "USER_DISABLED": "This account has been disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "TOKEN_EXPIRED": "Session expired. Please sign in again.",
    "INVALID_REFRESH_TOKEN": "Session expired. Please sign in again.",
    "USER_NOT_FOUND": "Session expired. Please sign in again.",
}


class IdentityProviderError(Exception):
    """Error response from the Firebase Auth REST API."""

    def __init__(self, code: str, status_code: int):
        """Keep the bare Firebase error code, e.g. ``INVALID_PASSWORD``."""
        self.code = code
        self.status_code = status_code
        super().__init__(code)

    @property
    def user_message(self) -> str:
        return _ERROR_MESSAGES.get(self.code, "Authentication failed. Please try again.")


@dataclass(frozen=True)
class IdentitySession:
    id_token: str
    refresh_token: str
    expires_in: int
    identity: Identity


def identity_from_record(record: Any) -> Identity:
    """Build an Identity from a firebase_admin ``UserRecord``."""
    return Identity(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url,
        email_verified=bool(record.email_verified),
    )


def identity_from_claims(claims: dict) -> Identity:
    """Build an Identity from decoded ID token claims."""
    return Identity(
        uid=claims["uid"],
        email=claims.get("email"),
        display_name=claims.get("name"),
        photo_url=claims.get("picture"),
        email_verified=claims.get("email_verified", False),
    )


class FirebaseIdentityProvider:
    """Identity provider operations used by the auth and profile endpoints."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Firebase Web API key for the REST endpoints
            timeout: Request timeout in seconds for REST calls
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.RequestError as e:
            logger.warning("identity_request_failed", url=url, error=str(e))
            raise ServiceUnavailableException(
                "Network error. Please check your connection and try again."
            ) from e

        if response.is_error:
            try:
                message = response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                message = "UNKNOWN_ERROR"
            # Codes may carry a suffix such as "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
            code = message.split(" ", 1)[0]
            logger.info("identity_request_rejected", url=url, code=code)
            raise IdentityProviderError(code, response.status_code)

        return response.json()

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        """
        Sign in with email and password.

        Raises:
            UnauthorizedException: If the credentials are rejected
        """
        try:
            data = await self._post(
                f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
                {"email": email, "password": password, "returnSecureToken": True},
            )
        except IdentityProviderError as e:
            raise UnauthorizedException(e.user_message) from e

        logger.info("user_signed_in", uid=data["localId"])
        return IdentitySession(
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_in=int(data["expiresIn"]),
            identity=Identity(
                uid=data["localId"],
                email=data.get("email", email),
                display_name=data.get("displayName") or None,
                photo_url=data.get("profilePicture"),
            ),
        )

    async def refresh(self, refresh_token: str) -> IdentitySession:
        """Exchange a refresh token for a new ID token."""
        try:
            data = await self._post(
                SECURE_TOKEN_URL,
                {"grant_type": "refresh_token", "refresh_token": refresh_token},
            )
        except IdentityProviderError as e:
            raise UnauthorizedException(e.user_message) from e

        identity = await self.get_identity(data["user_id"])
        return IdentitySession(
            id_token=data["id_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data["expires_in"]),
            identity=identity,
        )

    async def send_password_reset(self, email: str) -> None:
        """Ask Firebase to email a password reset link."""
        try:
            await self._post(
                f"{IDENTITY_TOOLKIT_URL}/accounts:sendOobCode",
                {"requestType": "PASSWORD_RESET", "email": email},
            )
        except IdentityProviderError as e:
            raise BadRequestException(e.user_message) from e
        logger.info("password_reset_sent")

    async def verify_session(self, id_token: str) -> Identity:
        """Resolve a bearer ID token to the identity it was issued for."""
        try:
            claims = await verify_firebase_token(id_token)
        except ValueError as e:
            raise UnauthorizedException(str(e)) from e
        return identity_from_claims(claims)

    async def create_account(self, email: str, password: str, display_name: str) -> Identity:
        """
        Create an email/password account.

        Raises:
            ConflictException: If the email is already registered
        """
        try:
            record = await asyncio.to_thread(
                auth.create_user,
                email=email,
                password=password,
                display_name=display_name,
                app=get_firebase_app(),
            )
        except auth.EmailAlreadyExistsError as e:
            raise ConflictException("An account with this email already exists") from e
        except (FirebaseError, ValueError) as e:
            logger.warning("account_creation_failed", error=str(e))
            raise BadRequestException(f"Registration failed: {e!s}") from e

        logger.info("account_created", uid=record.uid)
        return identity_from_record(record)

    async def get_identity(self, uid: str) -> Identity:
        try:
            record = await asyncio.to_thread(auth.get_user, uid, app=get_firebase_app())
        except auth.UserNotFoundError as e:
            raise NotFoundException("User not found") from e
        return identity_from_record(record)

    async def update_profile(
        self, uid: str, display_name: str, photo_url: str | None = None
    ) -> Identity:
        """Update the Auth profile; a ``None`` photo leaves the current one."""
        try:
            record = await asyncio.to_thread(
                auth.update_user,
                uid,
                display_name=display_name,
                photo_url=photo_url,
                app=get_firebase_app(),
            )
        except auth.UserNotFoundError as e:
            raise NotFoundException("User not found") from e
        except FirebaseError as e:
            logger.error("auth_profile_update_failed", uid=uid, error=str(e))
            raise StoreException("Failed to update your profile. Please try again.") from e
        return identity_from_record(record)

    async def revoke_sessions(self, uid: str) -> None:
        """Invalidate every refresh token issued to ``uid``."""
        await asyncio.to_thread(auth.revoke_refresh_tokens, uid, app=get_firebase_app())
        logger.info("sessions_revoked", uid=uid)
