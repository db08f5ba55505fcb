"""Cloud Storage uploads for profile pictures and feedback attachments."""

import asyncio
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote
from uuid import uuid4

import requests
from google.api_core.exceptions import GoogleAPICallError
from google.auth.exceptions import GoogleAuthError
from structlog import get_logger

from pain_tracker.core.exceptions import UploadException
from pain_tracker.core.uploads import MAX_UPLOAD_BYTES, AttachmentCandidate

logger = get_logger(__name__)

PROFILE_PICTURES_PREFIX = "profile-pictures"
FEEDBACK_ATTACHMENTS_PREFIX = "feedback-attachments"

# Mirrors storage.rules, which match on the wildcard rather than the form allow-list
_STORAGE_CONTENT_TYPE = re.compile(r"image/.*")


def profile_picture_path(uid: str, filename: str) -> str:
    return f"{PROFILE_PICTURES_PREFIX}/{uid}/{filename}"


def feedback_attachment_path(uid: str, filename: str, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{FEEDBACK_ATTACHMENTS_PREFIX}/{uid}/{now_ms}-{filename}"


@dataclass(frozen=True)
class UploadOutcome:
    """Result of one upload: a URL on success, an error message otherwise."""

    filename: str
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def download_url(bucket_name: str, path: str, token: str) -> str:
    """Firebase download URL that stays valid as long as the token does."""
    return (
        f"https://firebasestorage.googleapis.com/v0/b/{bucket_name}/o/"
        f"{quote(path, safe='')}?alt=media&token={token}"
    )


class StorageService:
    """Blob store writes, checked against the bucket's security rules first."""

    def __init__(self, bucket: Any, max_bytes: int = MAX_UPLOAD_BYTES):
        """Initialize with a ``google.cloud.storage.Bucket``."""
        self.bucket = bucket
        self.max_bytes = max_bytes

    def check_storage_rules(self, candidate: AttachmentCandidate) -> None:
        """
        Apply the bucket's own size and content-type rule.

        Raises:
            UploadException: If the bucket would refuse the object
        """
        if candidate.size > self.max_bytes:
            raise UploadException(candidate.filename, f"{candidate.filename} is larger than 5MB")
        if not _STORAGE_CONTENT_TYPE.fullmatch(candidate.content_type or ""):
            raise UploadException(candidate.filename, f"{candidate.filename} is not an image")

    async def upload(self, path: str, candidate: AttachmentCandidate) -> str:
        """
        Store ``candidate`` at ``path`` and return its durable download URL.

        Raises:
            UploadException: If the rules refuse the file or the write fails
        """
        self.check_storage_rules(candidate)

        token = str(uuid4())
        blob = self.bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        try:
            await asyncio.to_thread(
                blob.upload_from_string, candidate.data, content_type=candidate.content_type
            )
        except (GoogleAPICallError, GoogleAuthError, requests.RequestException) as e:
            logger.warning("blob_upload_failed", path=path, error=str(e))
            raise UploadException(
                candidate.filename, f"Failed to upload {candidate.filename}"
            ) from e

        logger.info("blob_uploaded", path=path, size=candidate.size)
        return download_url(self.bucket.name, path, token)

    async def upload_each(
        self,
        uid: str,
        candidates: Iterable[AttachmentCandidate],
        path_for: Callable[[str, str], str],
    ) -> list[UploadOutcome]:
        """
        Upload files one after another, each independently of the others.

        A failure is recorded in that file's outcome and the remaining files
        are still attempted; outcomes keep the input order.
        """
        outcomes: list[UploadOutcome] = []
        for candidate in candidates:
            try:
                url = await self.upload(path_for(uid, candidate.filename), candidate)
            except UploadException as e:
                logger.warning("attachment_upload_failed", uid=uid, filename=candidate.filename)
                outcomes.append(UploadOutcome(filename=candidate.filename, error=e.message))
                continue
            outcomes.append(UploadOutcome(filename=candidate.filename, url=url))
        return outcomes
