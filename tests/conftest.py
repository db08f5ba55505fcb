from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load environment variables from .env file
load_dotenv()

from pain_tracker.core.identity import FirebaseIdentityProvider, IdentitySession  # noqa: E402
from pain_tracker.core.redis_client import CacheManager  # noqa: E402
from pain_tracker.core.sessions import SessionEventBroker  # noqa: E402
from pain_tracker.dependencies import (  # noqa: E402
    get_cache_manager,
    get_firestore,
    get_identity_provider,
    get_storage_service,
)
from pain_tracker.main import app  # noqa: E402
from pain_tracker.schemas.auth import Identity  # noqa: E402
from pain_tracker.services.storage_service import StorageService  # noqa: E402
from fakes import FakeBucket, FakeFirestore  # noqa: E402


@pytest.fixture
def firestore_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def storage_service(bucket: FakeBucket) -> StorageService:
    return StorageService(bucket)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Redis double that always misses."""
    redis_client = MagicMock()
    redis_client.get.return_value = None
    return redis_client


@pytest.fixture
def cache_manager(mock_redis: MagicMock) -> CacheManager:
    return CacheManager(redis_client=mock_redis)


@pytest.fixture
def test_user() -> Identity:
    return Identity(
        uid="user-123",
        email="test@example.com",
        display_name="Test User",
        photo_url=None,
        email_verified=True,
    )


@pytest.fixture
def other_user() -> Identity:
    return Identity(uid="user-456", email="other@example.com", display_name="Other User")


@pytest.fixture
def identity_provider(test_user: Identity) -> AsyncMock:
    """Identity provider double; each test adjusts the calls it cares about."""
    provider = AsyncMock(spec=FirebaseIdentityProvider)
    provider.verify_session.return_value = test_user
    provider.sign_in.return_value = IdentitySession(
        id_token="id-token",
        refresh_token="refresh-token",
        expires_in=3600,
        identity=test_user,
    )
    provider.create_account.return_value = test_user

    async def update_profile(uid: str, display_name: str, photo_url: str | None = None):
        return test_user.model_copy(update={"display_name": display_name, "photo_url": photo_url})

    provider.update_profile.side_effect = update_profile
    return provider


@pytest.fixture
def session_broker() -> SessionEventBroker:
    return SessionEventBroker(queue_size=8)


@pytest_asyncio.fixture
async def client(
    firestore_db: FakeFirestore,
    storage_service: StorageService,
    cache_manager: CacheManager,
    identity_provider: AsyncMock,
    session_broker: SessionEventBroker,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client wired to the in-memory Firebase doubles."""
    app.dependency_overrides[get_firestore] = lambda: firestore_db
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_cache_manager] = lambda: cache_manager
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    original_broker = app.state.session_broker
    app.state.session_broker = session_broker

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.state.session_broker = original_broker
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Bearer header; the identity provider double accepts any token."""
    return {"Authorization": "Bearer test-id-token"}

