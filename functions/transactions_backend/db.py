"""
Transaction storage: Firestore and an in-memory test implementation.

Every method takes the verified caller uid and only ever addresses that
caller's collection.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Protocol

import firebase_admin
from firebase_admin import firestore

logger = logging.getLogger(__name__)

DATE_FIELD = "date"
ID_FIELD = "id"


class TransactionStore(Protocol):
    """Interface for per-caller transaction storage."""

    def list_transactions(self, uid: str) -> list[tuple[str, dict]]:
        ...

    def create_transaction(self, uid: str, data: dict) -> str:
        ...

    def merge_transaction(self, uid: str, transaction_id: str, data: dict) -> None:
        ...

    def delete_transaction(self, uid: str, transaction_id: str) -> None:
        ...


def coerce_date(value: Any) -> datetime:
    """
    Turn a client-supplied date into a timezone-aware datetime.

    Strings are ISO-8601 (naive means UTC); numbers are epoch milliseconds.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Invalid date: {value!r}") from exc
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid date: {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise ValueError(f"Invalid date: {value!r}")


def normalize_date(value: Any) -> Any:
    """Render stored timestamps as `YYYY-MM-DDTHH:MM:SS.mmmZ`; pass anything else through."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def to_record(transaction_id: str, data: dict | None) -> dict:
    record = dict(data or {})
    if DATE_FIELD in record:
        record[DATE_FIELD] = normalize_date(record[DATE_FIELD])
    record[ID_FIELD] = transaction_id
    return record


def prepare_fields(body: dict) -> dict:
    """All body fields except the identifier, with `date` coerced when set."""
    fields = {key: value for key, value in body.items() if key != ID_FIELD}
    if fields.get(DATE_FIELD):
        fields[DATE_FIELD] = coerce_date(fields[DATE_FIELD])
    return fields


def _check_segment(value: str, label: str) -> str:
    if not value or "/" in value:
        raise ValueError(f"Invalid {label}: {value!r}")
    return value


def collection_path(template: str, uid: str) -> str:
    return template.format(uid=_check_segment(uid, "uid"))


def _deep_merge(target: dict, updates: dict) -> None:
    # Nested maps merge key by key, like Firestore set(..., merge=True).
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


@dataclass
class InMemoryTransactionStore:
    """Simple in-memory store for development and tests."""

    collections: Dict[str, Dict[str, dict]] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def reset(self) -> None:
        with self._lock:
            self.collections.clear()

    def list_transactions(self, uid: str) -> list[tuple[str, dict]]:
        with self._lock:
            docs = self.collections.get(uid, {})
            return [(doc_id, copy.deepcopy(data)) for doc_id, data in docs.items()]

    def create_transaction(self, uid: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        with self._lock:
            self.collections.setdefault(uid, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    def merge_transaction(self, uid: str, transaction_id: str, data: dict) -> None:
        _check_segment(transaction_id, "transaction id")
        with self._lock:
            docs = self.collections.setdefault(uid, {})
            _deep_merge(docs.setdefault(transaction_id, {}), copy.deepcopy(data))

    def delete_transaction(self, uid: str, transaction_id: str) -> None:
        _check_segment(transaction_id, "transaction id")
        with self._lock:
            self.collections.get(uid, {}).pop(transaction_id, None)


class FirestoreTransactionStore:
    """Firestore-backed store rooted at `users/{uid}/transactions` by default."""

    def __init__(
        self,
        app: firebase_admin.App | None = None,
        *,
        collection_template: str = "users/{uid}/transactions",
        client=None,
    ):
        self.client = client if client is not None else firestore.client(app)
        self.collection_template = collection_template

    def _collection(self, uid: str):
        return self.client.collection(collection_path(self.collection_template, uid))

    def _document(self, uid: str, transaction_id: str):
        return self._collection(uid).document(
            _check_segment(transaction_id, "transaction id")
        )

    def list_transactions(self, uid: str) -> list[tuple[str, dict]]:
        snapshots = self._collection(uid).stream()
        return [(snap.id, snap.to_dict() or {}) for snap in snapshots]

    def create_transaction(self, uid: str, data: dict) -> str:
        _, doc_ref = self._collection(uid).add(data)
        logger.debug("Created transaction %s for %s", doc_ref.id, uid)
        return doc_ref.id

    def merge_transaction(self, uid: str, transaction_id: str, data: dict) -> None:
        self._document(uid, transaction_id).set(data, merge=True)
        logger.debug("Merged transaction %s for %s", transaction_id, uid)

    def delete_transaction(self, uid: str, transaction_id: str) -> None:
        self._document(uid, transaction_id).delete()
        logger.debug("Deleted transaction %s for %s", transaction_id, uid)
