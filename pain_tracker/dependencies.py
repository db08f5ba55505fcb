"""FastAPI dependencies."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pain_tracker.config import settings
from pain_tracker.core.exceptions import UnauthorizedException
from pain_tracker.core.firebase import get_firestore_client, get_storage_bucket
from pain_tracker.core.identity import FirebaseIdentityProvider
from pain_tracker.core.redis_client import CacheManager, get_redis_client
from pain_tracker.core.sessions import SessionEventBroker
from pain_tracker.schemas.auth import Identity
from pain_tracker.services.auth_service import AuthService
from pain_tracker.services.feedback_service import FeedbackService
from pain_tracker.services.pain_entry_service import PainEntryService
from pain_tracker.services.profile_service import ProfileService
from pain_tracker.services.storage_service import StorageService

# Security
security = HTTPBearer()


def get_firestore() -> Any:
    """Async Firestore client."""
    return get_firestore_client()


def get_storage_service() -> StorageService:
    return StorageService(get_storage_bucket(), max_bytes=settings.max_upload_bytes)


def get_cache_manager() -> CacheManager:
    return CacheManager(get_redis_client())


def get_identity_provider() -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider(
        api_key=settings.firebase_web_api_key,
        timeout=settings.identity_request_timeout,
    )


def get_session_broker(request: Request) -> SessionEventBroker:
    """The broker created alongside the application in ``main``."""
    return request.app.state.session_broker


FirestoreClient = Annotated[Any, Depends(get_firestore)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
CacheManagerDep = Annotated[CacheManager, Depends(get_cache_manager)]
IdentityProviderDep = Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)]
SessionBrokerDep = Annotated[SessionEventBroker, Depends(get_session_broker)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    identity_provider: IdentityProviderDep,
) -> Identity:
    """
    Resolve the bearer Firebase ID token to the caller's identity.

    Raises:
        HTTPException: If the token is invalid, expired or revoked
    """
    try:
        return await identity_provider.verify_session(credentials.credentials)
    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


CurrentUser = Annotated[Identity, Depends(get_current_user)]


def get_pain_entry_service(db: FirestoreClient, cache: CacheManagerDep) -> PainEntryService:
    return PainEntryService(db, cache)


def get_profile_service(
    db: FirestoreClient,
    storage: StorageServiceDep,
    identity_provider: IdentityProviderDep,
) -> ProfileService:
    return ProfileService(db, storage, identity_provider)


def get_feedback_service(db: FirestoreClient, storage: StorageServiceDep) -> FeedbackService:
    return FeedbackService(db, storage)


ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]


def get_auth_service(
    identity_provider: IdentityProviderDep,
    profile_service: ProfileServiceDep,
    broker: SessionBrokerDep,
) -> AuthService:
    return AuthService(identity_provider, profile_service, broker)


# Type aliases for dependency injection
PainEntryServiceDep = Annotated[PainEntryService, Depends(get_pain_entry_service)]
FeedbackServiceDep = Annotated[FeedbackService, Depends(get_feedback_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
