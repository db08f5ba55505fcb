"""In-memory stand-ins for the async Firestore client and a Storage bucket.

They implement only the calls the services make.
"""

from datetime import UTC, datetime
from itertools import count
from typing import Any

from google.api_core.exceptions import ServiceUnavailable
from google.cloud.firestore import SERVER_TIMESTAMP

_OPERATORS = {
    "==": lambda a, b: a == b,
    ">=": lambda a, b: a is not None and a >= b,
    "<=": lambda a, b: a is not None and a <= b,
}


def _resolve(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: datetime.now(UTC) if value is SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict[str, Any] | None):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, store: "FakeFirestore", collection: str, doc_id: str):
        self._store = store
        self._collection = collection
        self.id = doc_id

    async def get(self) -> FakeSnapshot:
        self._store.check("get")
        return FakeSnapshot(self.id, self._store.docs(self._collection).get(self.id))

    async def set(self, data: dict[str, Any], merge: bool = False) -> None:
        self._store.check("set")
        docs = self._store.docs(self._collection)
        if merge and self.id in docs:
            docs[self.id] = {**docs[self.id], **_resolve(data)}
        else:
            docs[self.id] = _resolve(data)

    async def delete(self) -> None:
        self._store.check("delete")
        self._store.docs(self._collection).pop(self.id, None)


class FakeQuery:
    def __init__(self, store: "FakeFirestore", collection: str):
        self._store = store
        self._collection = collection
        self._filters: list[tuple[str, str, Any]] = []
        self._order: tuple[str, bool] | None = None

    def where(self, *, filter: Any) -> "FakeQuery":
        self._filters.append((filter.field_path, filter.op_string, filter.value))
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> "FakeQuery":
        self._order = (field, direction == "DESCENDING")
        return self

    async def stream(self):
        self._store.check("stream")
        rows = [
            (doc_id, data)
            for doc_id, data in self._store.docs(self._collection).items()
            if all(_OPERATORS[op](data.get(f), v) for f, op, v in self._filters)
        ]
        if self._order is not None:
            field, reverse = self._order
            rows.sort(key=lambda row: row[1][field], reverse=reverse)
        for doc_id, data in rows:
            yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def document(self, doc_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self._store, self._collection, doc_id)

    async def add(self, data: dict[str, Any]) -> tuple[datetime, FakeDocumentReference]:
        self._store.check("add")
        doc_id = f"{self._collection}-{next(self._store.ids)}"
        self._store.docs(self._collection)[doc_id] = _resolve(data)
        return datetime.now(UTC), FakeDocumentReference(self._store, self._collection, doc_id)


class FakeFirestore:
    """Collections of plain dicts; ``fail_on`` makes named operations raise."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.fail_on: set[str] = set()
        self.ids = count(1)

    def check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ServiceUnavailable(f"firestore {operation} unavailable")

    def docs(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)


class FakeBlob:
    def __init__(self, bucket: "FakeBucket", name: str):
        self.bucket = bucket
        self.name = name
        self.metadata: dict[str, str] | None = None

    def upload_from_string(self, data: bytes, content_type: str | None = None) -> None:
        filename = self.name.rsplit("/", 1)[-1].split("-", 1)[-1]
        if filename in self.bucket.errors:
            raise self.bucket.errors[filename]
        if filename in self.bucket.fail_names:
            raise ServiceUnavailable(f"storage unavailable for {self.name}")
        self.bucket.objects[self.name] = {
            "data": data,
            "content_type": content_type,
            "metadata": self.metadata,
        }


class FakeBucket:
    """Records uploaded objects.

    Uploads of files named in ``fail_names`` raise a Google API error; files
    named in ``errors`` raise the mapped exception instead.
    """

    def __init__(self, name: str = "pain-tracker-test.appspot.com"):
        self.name = name
        self.objects: dict[str, dict[str, Any]] = {}
        self.fail_names: set[str] = set()
        self.errors: dict[str, Exception] = {}

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)
