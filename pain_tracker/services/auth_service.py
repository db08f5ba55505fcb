"""Authentication service for Firebase Auth flows."""

from dataclasses import dataclass, field

from structlog import get_logger

from pain_tracker.core.identity import FirebaseIdentityProvider, IdentitySession
from pain_tracker.core.sessions import SessionEventBroker
from pain_tracker.core.uploads import (
    MAX_PROFILE_PICTURES,
    AttachmentCandidate,
    AttachmentQueue,
    AttachmentRejection,
)
from pain_tracker.schemas.auth import Identity, RegisterForm
from pain_tracker.services.profile_service import ProfileService
from pain_tracker.services.storage_service import UploadOutcome, profile_picture_path

logger = get_logger(__name__)


@dataclass
class RegistrationOutcome:
    session: IdentitySession
    rejected: list[AttachmentRejection] = field(default_factory=list)
    failed: list[UploadOutcome] = field(default_factory=list)


class AuthService:
    """Sign-up, sign-in and sign-out, publishing each session change."""

    def __init__(
        self,
        identity_provider: FirebaseIdentityProvider,
        profile_service: ProfileService,
        broker: SessionEventBroker,
    ):
        """Initialize auth service with its collaborators."""
        self.identity_provider = identity_provider
        self.profile_service = profile_service
        self.broker = broker

    async def register(
        self, form: RegisterForm, picture: AttachmentCandidate | None = None
    ) -> RegistrationOutcome:
        """
        Create an account, its profile document and a signed-in session.

        The account exists once Firebase accepts it; a picture that is
        rejected or fails to upload is reported and the account keeps no photo.
        """
        identity = await self.identity_provider.create_account(
            form.email, form.password, form.display_name
        )

        photo_url: str | None = None
        rejected: list[AttachmentRejection] = []
        failed: list[UploadOutcome] = []
        if picture is not None:
            storage = self.profile_service.storage
            queue = AttachmentQueue(limit=MAX_PROFILE_PICTURES, max_bytes=storage.max_bytes)
            rejected = queue.offer([picture])
            outcomes = await storage.upload_each(identity.uid, queue.files, profile_picture_path)
            failed = [outcome for outcome in outcomes if not outcome.ok]
            photo_url = next((outcome.url for outcome in outcomes if outcome.ok), None)

        if photo_url:
            identity = await self.identity_provider.update_profile(
                identity.uid, display_name=form.display_name, photo_url=photo_url
            )
        await self.profile_service.create_profile(identity, form.display_name, photo_url)

        session = await self.sign_in(form.email, form.password)
        logger.info("user_registered", uid=identity.uid, has_photo=photo_url is not None)
        return RegistrationOutcome(session=session, rejected=rejected, failed=failed)

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        session = await self.identity_provider.sign_in(email, password)
        self.broker.publish(session.identity.uid, session.identity)
        return session

    async def refresh(self, refresh_token: str) -> IdentitySession:
        return await self.identity_provider.refresh(refresh_token)

    async def send_password_reset(self, email: str) -> None:
        await self.identity_provider.send_password_reset(email)

    async def sign_out(self, identity: Identity) -> None:
        """Revoke the user's refresh tokens and announce the absent session."""
        await self.identity_provider.revoke_sessions(identity.uid)
        self.broker.publish(identity.uid, None)
        logger.info("user_signed_out", uid=identity.uid)
