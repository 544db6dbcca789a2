"""Domain models shared by the directory client, the mirror and the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

# Timestamps arrive as datetimes, epoch milliseconds or text depending on
# the directory backend; the mirror normalises them when rows are written.
RawTimestamp = Union[datetime, int, float, str, None]


@dataclass(frozen=True)
class ProviderInfo:
    """A sign-in provider linked to a directory account."""

    id: str
    provider_kind: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "uid": self.id,
            "displayName": self.display_name,
            "email": self.email,
            "photoURL": self.photo_url,
            "providerId": self.provider_kind,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "ProviderInfo":
        return ProviderInfo(
            id=str(data.get("uid") or ""),
            provider_kind=str(data.get("providerId") or ""),
            display_name=data.get("displayName") or None,
            email=data.get("email") or None,
            photo_url=data.get("photoURL") or None,
        )


@dataclass(frozen=True)
class User:
    """One account in the remote identity directory."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email_verified: bool = False
    disabled: bool = False
    created_at: RawTimestamp = None
    last_sign_in_at: RawTimestamp = None
    custom_claims: Mapping[str, Any] = field(default_factory=dict)
    providers: Tuple[ProviderInfo, ...] = ()


@dataclass(frozen=True)
class MirrorRow:
    """A user as stored in the local mirror, including the derived flag."""

    user: User
    suspicious: bool

    @property
    def id(self) -> str:
        return self.user.id


@dataclass(frozen=True)
class DirectorySnapshot:
    """The complete result of one paginated directory fetch."""

    users: Tuple[User, ...]
    started_at: datetime

    def __iter__(self) -> Iterator[User]:
        return iter(self.users)

    def __len__(self) -> int:
        return len(self.users)

    def ids(self) -> frozenset[str]:
        return frozenset(user.id for user in self.users)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a directory synchronisation pass."""

    success: bool
    total: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"success": self.success, "total": self.total}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class RemediationResult:
    """Outcome of an automatic suspicious-account remediation pass."""

    success: bool
    disabled_count: int = 0
    failed: Tuple[str, ...] = ()
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "success": self.success,
            "disabledCount": self.disabled_count,
        }
        if self.failed:
            payload["failed"] = list(self.failed)
        if self.error is not None:
            payload["error"] = self.error
        return payload


__all__ = [
    "DirectorySnapshot",
    "MirrorRow",
    "ProviderInfo",
    "RawTimestamp",
    "RemediationResult",
    "SyncResult",
    "User",
]
