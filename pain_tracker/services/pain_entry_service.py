"""Pain entry service for Firestore-backed entries."""

from datetime import UTC, date, datetime, time
from typing import Any

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import SERVER_TIMESTAMP, FieldFilter, Query
from structlog import get_logger

from pain_tracker.config import settings
from pain_tracker.core.exceptions import ForbiddenException, NotFoundException, StoreException
from pain_tracker.core.redis_client import CacheManager, entry_list_key
from pain_tracker.schemas.pain_entries import PainEntryCreate, PainEntryResponse
from pain_tracker.services.trends import DateWindow, TrendPoint, aggregate_daily_pain

logger = get_logger(__name__)

PAIN_ENTRIES_COLLECTION = "painEntries"


def day_to_timestamp(day: date) -> datetime:
    """Observation days are stored as midnight UTC."""
    return datetime.combine(day, time.min, tzinfo=UTC)


def timestamp_to_day(value: datetime | date) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def entry_from_document(doc_id: str, data: dict[str, Any]) -> PainEntryResponse:
    return PainEntryResponse(
        id=doc_id,
        user_id=data["userId"],
        pain_level=data["painLevel"],
        date=timestamp_to_day(data["date"]),
        notes=data.get("notes", ""),
        created_at=data.get("createdAt"),
    )


class PainEntryService:
    """Service for pain entry operations."""

    def __init__(self, db: Any, cache_manager: CacheManager | None = None):
        """Initialize with an async Firestore client and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    def _invalidate(self, uid: str) -> None:
        if self.cache:
            self.cache.delete(entry_list_key(uid))

    async def create_entry(self, uid: str, entry_data: PainEntryCreate) -> PainEntryResponse:
        """Record a new entry owned by ``uid``."""
        document = {
            "userId": uid,
            "painLevel": entry_data.pain_level,
            "date": day_to_timestamp(entry_data.date),
            "notes": entry_data.notes,
            "createdAt": SERVER_TIMESTAMP,
        }
        try:
            _, doc_ref = await self.db.collection(PAIN_ENTRIES_COLLECTION).add(document)
            snapshot = await doc_ref.get()
        except GoogleAPICallError as e:
            logger.error("pain_entry_create_failed", uid=uid, error=str(e))
            raise StoreException("Failed to add your pain entry. Please try again.") from e

        self._invalidate(uid)
        logger.info("pain_entry_created", uid=uid, entry_id=doc_ref.id)
        return entry_from_document(doc_ref.id, snapshot.to_dict())

    async def list_entries(self, uid: str) -> list[PainEntryResponse]:
        """All of the user's entries, newest observation date first."""
        if self.cache:
            cached = self.cache.get_json(entry_list_key(uid))
            if cached is not None:
                return [PainEntryResponse.model_validate(item) for item in cached]

        query = (
            self.db.collection(PAIN_ENTRIES_COLLECTION)
            .where(filter=FieldFilter("userId", "==", uid))
            .order_by("date", direction=Query.DESCENDING)
        )
        try:
            entries = [
                entry_from_document(snapshot.id, snapshot.to_dict())
                async for snapshot in query.stream()
            ]
        except GoogleAPICallError as e:
            logger.error("pain_entries_load_failed", uid=uid, error=str(e))
            raise StoreException("Error loading entries. Please try again later.") from e

        if self.cache:
            self.cache.set_json(
                entry_list_key(uid),
                [entry.model_dump(mode="json") for entry in entries],
                ttl=settings.pain_entries_cache_ttl,
            )
        return entries

    async def delete_entry(self, uid: str, entry_id: str) -> list[PainEntryResponse]:
        """
        Delete one of the user's entries and refetch the full list.

        Raises:
            NotFoundException: If the entry does not exist
            ForbiddenException: If the entry belongs to another user
            StoreException: If Firestore fails
        """
        doc_ref = self.db.collection(PAIN_ENTRIES_COLLECTION).document(entry_id)
        try:
            snapshot = await doc_ref.get()
            if not snapshot.exists:
                raise NotFoundException("Pain entry not found")
            if snapshot.to_dict().get("userId") != uid:
                raise ForbiddenException("You can only delete your own entries")
            await doc_ref.delete()
        except GoogleAPICallError as e:
            logger.error("pain_entry_delete_failed", uid=uid, entry_id=entry_id, error=str(e))
            raise StoreException("Failed to delete the entry. Please try again.") from e

        self._invalidate(uid)
        logger.info("pain_entry_deleted", uid=uid, entry_id=entry_id)
        return await self.list_entries(uid)

    async def get_trend(self, uid: str, window: DateWindow) -> list[TrendPoint]:
        return aggregate_daily_pain(await self.list_entries(uid), window)
