"""Tests for feedback submission."""

import pytest
import requests
from httpx import AsyncClient

from pain_tracker.core.uploads import MAX_UPLOAD_BYTES
from pain_tracker.services.feedback_service import FEEDBACK_COLLECTION

FEEDBACK_TEXT = "The chart labels overlap on small screens."


def screenshot(name: str, size: int = 128, content_type: str = "image/png") -> tuple:
    return ("attachments", (name, b"0" * size, content_type))


@pytest.mark.asyncio
async def test_submit_feedback_without_attachments(
    client: AsyncClient,
    auth_headers: dict,
    firestore_db,
) -> None:
    """Test submitting text-only feedback."""
    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["attachments"] == []

    stored = firestore_db.docs(FEEDBACK_COLLECTION)[data["id"]]
    assert stored["userId"] == "user-123"
    assert stored["userEmail"] == "test@example.com"
    assert stored["feedback"] == FEEDBACK_TEXT
    assert stored["attachments"] == []
    assert stored["createdAt"] is not None


@pytest.mark.asyncio
async def test_submit_feedback_with_attachments(
    client: AsyncClient,
    auth_headers: dict,
    bucket,
    firestore_db,
) -> None:
    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        files=[screenshot("one.png"), screenshot("two.webp", content_type="image/webp")],
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["attachments"]) == 2
    assert all("feedback-attachments%2Fuser-123%2F" in url for url in data["attachments"])
    assert sorted(name.rsplit("-", 1)[-1] for name in bucket.objects) == ["one.png", "two.webp"]
    assert firestore_db.docs(FEEDBACK_COLLECTION)[data["id"]]["attachments"] == data["attachments"]


@pytest.mark.asyncio
async def test_feedback_too_short(
    client: AsyncClient,
    auth_headers: dict,
    firestore_db,
) -> None:
    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": "too short"},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert "feedback" in response.json()["fields"]
    assert firestore_db.docs(FEEDBACK_COLLECTION) == {}


@pytest.mark.asyncio
async def test_fourth_attachment_is_rejected(
    client: AsyncClient,
    auth_headers: dict,
    bucket,
) -> None:
    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        files=[screenshot(f"shot{i}.png") for i in range(1, 5)],
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["attachments"]) == 3
    assert data["rejected_files"] == [
        {
            "filename": "shot4.png",
            "reason": "too_many_files",
            "message": "Maximum of 3 files allowed",
        }
    ]
    assert len(bucket.objects) == 3


@pytest.mark.asyncio
async def test_invalid_attachments_are_dropped(
    client: AsyncClient,
    auth_headers: dict,
    bucket,
) -> None:
    """Oversized and non-image files are refused before any upload."""
    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        files=[
            screenshot("huge.png", size=MAX_UPLOAD_BYTES + 1),
            screenshot("anim.gif", content_type="image/gif"),
            screenshot("ok.jpg", content_type="image/jpeg"),
        ],
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert [(r["filename"], r["reason"]) for r in data["rejected_files"]] == [
        ("huge.png", "file_too_large"),
        ("anim.gif", "invalid_file_type"),
    ]
    assert len(data["attachments"]) == 1
    assert len(bucket.objects) == 1


@pytest.mark.asyncio
async def test_failed_upload_still_creates_record(
    client: AsyncClient,
    auth_headers: dict,
    bucket,
    firestore_db,
) -> None:
    """One failed upload does not stop the others or the record."""
    bucket.fail_names.add("two.png")

    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        files=[screenshot("one.png"), screenshot("two.png"), screenshot("three.png")],
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["attachments"]) == 2
    assert data["failed_uploads"] == [
        {"filename": "two.png", "message": "Failed to upload two.png"}
    ]
    assert len(firestore_db.docs(FEEDBACK_COLLECTION)[data["id"]]["attachments"]) == 2


@pytest.mark.asyncio
async def test_submit_feedback_store_failure(
    client: AsyncClient,
    auth_headers: dict,
    firestore_db,
) -> None:
    firestore_db.fail_on.add("add")

    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        headers=auth_headers,
    )

    assert response.status_code == 503
    assert response.json()["message"] == "Failed to submit feedback. Please try again."


@pytest.mark.asyncio
async def test_connection_error_still_creates_record(
    client: AsyncClient,
    auth_headers: dict,
    bucket,
    firestore_db,
) -> None:
    """A dropped connection on one file leaves the others and the record intact."""
    bucket.errors["one.png"] = requests.exceptions.ConnectionError("connection reset")

    response = await client.post(
        "/api/v1/feedback",
        data={"feedback": FEEDBACK_TEXT},
        files=[screenshot("one.png"), screenshot("two.png")],
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["attachments"]) == 1
    assert data["failed_uploads"] == [
        {"filename": "one.png", "message": "Failed to upload one.png"}
    ]
    assert firestore_db.docs(FEEDBACK_COLLECTION)[data["id"]]["attachments"] == data["attachments"]
