"""Profile service for the ``users`` collection."""

from dataclasses import dataclass, field
from typing import Any

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import SERVER_TIMESTAMP
from structlog import get_logger

from pain_tracker.core.exceptions import StoreException
from pain_tracker.core.identity import FirebaseIdentityProvider
from pain_tracker.core.uploads import (
    MAX_PROFILE_PICTURES,
    AttachmentCandidate,
    AttachmentQueue,
    AttachmentRejection,
)
from pain_tracker.schemas.auth import Identity
from pain_tracker.schemas.users import ProfileResponse, ProfileUpdate
from pain_tracker.services.storage_service import (
    StorageService,
    UploadOutcome,
    profile_picture_path,
)

logger = get_logger(__name__)

USERS_COLLECTION = "users"


@dataclass
class ProfileUpdateOutcome:
    profile: ProfileResponse
    identity: Identity
    rejected: list[AttachmentRejection] = field(default_factory=list)
    failed: list[UploadOutcome] = field(default_factory=list)


def profile_from_document(uid: str, data: dict[str, Any], identity: Identity) -> ProfileResponse:
    """Profile fields, falling back to the Auth record where the document is blank."""
    return ProfileResponse(
        id=uid,
        email=data.get("email") or identity.email,
        display_name=data.get("displayName") or identity.display_name or "",
        photo_url=data.get("photoURL") or identity.photo_url,
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
    )


class ProfileService:
    """Service for profile reads and settings updates."""

    def __init__(
        self,
        db: Any,
        storage: StorageService,
        identity_provider: FirebaseIdentityProvider,
    ):
        """Initialize with the Firestore client, blob storage and identity provider."""
        self.db = db
        self.storage = storage
        self.identity_provider = identity_provider

    def _document(self, uid: str) -> Any:
        return self.db.collection(USERS_COLLECTION).document(uid)

    async def create_profile(
        self, identity: Identity, display_name: str, photo_url: str | None
    ) -> None:
        """Write a fresh profile document, replacing any existing one."""
        try:
            await self._document(identity.uid).set(
                {
                    "email": identity.email,
                    "displayName": display_name,
                    "photoURL": photo_url,
                    "createdAt": SERVER_TIMESTAMP,
                }
            )
        except GoogleAPICallError as e:
            logger.error("profile_create_failed", uid=identity.uid, error=str(e))
            raise StoreException("Failed to save your profile. Please try again.") from e
        logger.info("profile_created", uid=identity.uid)

    async def get_or_create_profile(self, identity: Identity) -> ProfileResponse:
        """Return the user's profile, creating it from the Auth record on first visit."""
        doc_ref = self._document(identity.uid)
        try:
            snapshot = await doc_ref.get()
            if not snapshot.exists:
                await self.create_profile(
                    identity, identity.display_name or "", identity.photo_url
                )
                snapshot = await doc_ref.get()
        except GoogleAPICallError as e:
            logger.error("profile_load_failed", uid=identity.uid, error=str(e))
            raise StoreException("Failed to load profile. Please try again.") from e

        return profile_from_document(identity.uid, snapshot.to_dict() or {}, identity)

    async def update_profile(
        self,
        identity: Identity,
        update: ProfileUpdate,
        picture: AttachmentCandidate | None = None,
    ) -> ProfileUpdateOutcome:
        """
        Apply the settings form.

        A rejected or failed picture is reported and the current photo kept;
        the display name is still saved.
        """
        photo_url = identity.photo_url
        rejected: list[AttachmentRejection] = []
        failed: list[UploadOutcome] = []

        if picture is not None:
            queue = AttachmentQueue(limit=MAX_PROFILE_PICTURES, max_bytes=self.storage.max_bytes)
            rejected = queue.offer([picture])
            for outcome in await self.storage.upload_each(
                identity.uid, queue.files, profile_picture_path
            ):
                if outcome.ok:
                    photo_url = outcome.url
                else:
                    failed.append(outcome)

        updated_identity = await self.identity_provider.update_profile(
            identity.uid, display_name=update.display_name, photo_url=photo_url
        )

        doc_ref = self._document(identity.uid)
        try:
            await doc_ref.set(
                {
                    "email": identity.email,
                    "displayName": update.display_name,
                    "photoURL": photo_url,
                    "updatedAt": SERVER_TIMESTAMP,
                },
                merge=True,
            )
            snapshot = await doc_ref.get()
        except GoogleAPICallError as e:
            logger.error("profile_update_failed", uid=identity.uid, error=str(e))
            raise StoreException("Failed to update your profile. Please try again.") from e

        logger.info(
            "profile_updated",
            uid=identity.uid,
            photo_changed=photo_url != identity.photo_url,
        )
        return ProfileUpdateOutcome(
            profile=profile_from_document(identity.uid, snapshot.to_dict() or {}, updated_identity),
            identity=updated_identity,
            rejected=rejected,
            failed=failed,
        )
