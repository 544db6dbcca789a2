"""Shared fixtures: an in-process directory service and a temporary mirror."""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from usermirror.database import MirrorStore
from usermirror.models import User


def make_record(
    uid: str,
    *,
    name: Optional[str] = None,
    created: Optional[str] = "2024-03-01T10:00:00Z",
    disabled: bool = False,
    email: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "uid": uid,
        "email": email if email is not None else f"{uid}@example.com",
        "displayName": name,
        "photoURL": None,
        "emailVerified": False,
        "disabled": disabled,
        "creationTime": created,
        "lastSignInTime": None,
        "customClaims": {},
        "providerData": [
            {"uid": f"{uid}@example.com", "providerId": "password", "email": f"{uid}@example.com"}
        ],
    }
    record.update(extra)
    return record


class FakeDirectory:
    """Implements the directory service interface over an in-memory dict."""

    def __init__(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self.records: Dict[str, Dict[str, Any]] = {record["uid"]: dict(record) for record in records}
        self.fail_pages: Set[Optional[str]] = set()
        self.fail_disable: Set[str] = set()
        self.page_requests: List[Tuple[int, Optional[str]]] = []
        self.disable_calls: List[str] = []
        self._lock = threading.Lock()

    def add(self, record: Dict[str, Any]) -> None:
        self.records[record["uid"]] = dict(record)

    def remove(self, uid: str) -> None:
        self.records.pop(uid, None)

    def list_page(self, page_size: int, page_token: Optional[str]) -> Tuple[Sequence[Any], Optional[str]]:
        self.page_requests.append((page_size, page_token))
        if page_token in self.fail_pages:
            raise RuntimeError(f"page {page_token!r} unavailable")
        ordered = sorted(self.records)
        start = int(page_token) if page_token else 0
        chunk = [dict(self.records[uid]) for uid in ordered[start : start + page_size]]
        next_index = start + page_size
        next_token = str(next_index) if next_index < len(ordered) else None
        return chunk, next_token

    def set_disabled(self, uid: str, disabled: bool) -> None:
        with self._lock:
            self.disable_calls.append(uid)
        if uid in self.fail_disable:
            raise RuntimeError(f"quota exceeded for {uid}")
        self.records[uid]["disabled"] = disabled


@pytest.fixture()
def store(tmp_path: Path) -> MirrorStore:
    mirror = MirrorStore(tmp_path / "users.sqlite3")
    mirror.initialize()
    return mirror


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory()


def sample_user(uid: str, **overrides: Any) -> User:
    values: Dict[str, Any] = {
        "id": uid,
        "email": f"{uid}@example.com",
        "display_name": "Sample",
        "created_at": "2024-03-01T10:00:00Z",
    }
    values.update(overrides)
    return User(**values)
