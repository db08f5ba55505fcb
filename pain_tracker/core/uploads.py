"""Attachment guard applied to files before they reach Cloud Storage."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_FEEDBACK_ATTACHMENTS = 3
MAX_PROFILE_PICTURES = 1


class RejectionReason(str, Enum):
    """Why a candidate file was refused."""

    FILE_TOO_LARGE = "file_too_large"
    INVALID_FILE_TYPE = "invalid_file_type"
    TOO_MANY_FILES = "too_many_files"


@dataclass(frozen=True)
class AttachmentCandidate:
    """A file selected for upload, already read into memory."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AttachmentRejection:
    """A dropped file together with a user-facing explanation."""

    filename: str
    reason: RejectionReason
    message: str


def check_attachment(
    candidate: AttachmentCandidate,
    max_bytes: int = MAX_UPLOAD_BYTES,
    accepted_types: Iterable[str] = ACCEPTED_IMAGE_TYPES,
) -> RejectionReason | None:
    """Return the reason a single file is unacceptable, or None if it passes."""
    if candidate.size > max_bytes:
        return RejectionReason.FILE_TOO_LARGE
    if candidate.content_type not in tuple(accepted_types):
        return RejectionReason.INVALID_FILE_TYPE
    return None


def describe_rejection(filename: str, reason: RejectionReason, limit: int) -> str:
    if reason is RejectionReason.FILE_TOO_LARGE:
        return f"{filename} is larger than 5MB"
    if reason is RejectionReason.INVALID_FILE_TYPE:
        return f"{filename} is not a supported image type (JPEG, PNG, WebP)"
    return f"Maximum of {limit} files allowed"


class AttachmentQueue:
    """Files accepted for upload, capped at ``limit``.

    Offering more files never evicts ones already queued: each candidate is
    checked on its own and the overflow is rejected with ``too_many_files``.
    """

    def __init__(self, limit: int = MAX_FEEDBACK_ATTACHMENTS, max_bytes: int = MAX_UPLOAD_BYTES):
        """Create an empty queue holding at most ``limit`` files."""
        self.limit = limit
        self.max_bytes = max_bytes
        self._files: list[AttachmentCandidate] = []

    @property
    def files(self) -> list[AttachmentCandidate]:
        return list(self._files)

    @property
    def is_full(self) -> bool:
        return len(self._files) >= self.limit

    def __len__(self) -> int:
        return len(self._files)

    def offer(self, candidates: Iterable[AttachmentCandidate]) -> list[AttachmentRejection]:
        """Queue every acceptable candidate and return the rejected ones."""
        rejections: list[AttachmentRejection] = []
        for candidate in candidates:
            reason = check_attachment(candidate, max_bytes=self.max_bytes)
            if reason is None and self.is_full:
                reason = RejectionReason.TOO_MANY_FILES
            if reason is not None:
                rejections.append(
                    AttachmentRejection(
                        filename=candidate.filename,
                        reason=reason,
                        message=describe_rejection(candidate.filename, reason, self.limit),
                    )
                )
                continue
            self._files.append(candidate)
        return rejections

    def remove(self, index: int) -> AttachmentCandidate:
        """Drop a queued file by position."""
        return self._files.pop(index)
