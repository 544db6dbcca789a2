"""Client for paginating and updating the remote identity directory."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from .errors import DirectoryError
from .models import DirectorySnapshot, ProviderInfo, User

logger = logging.getLogger("usermirror.directory")

DEFAULT_PAGE_SIZE = 1000
MAX_PAGE_SIZE = 1000


class DirectoryService(Protocol):
    """Remote capability consumed by :class:`DirectoryClient`."""

    def list_page(
        self, page_size: int, page_token: Optional[str]
    ) -> Tuple[Sequence[Any], Optional[str]]:
        """Return one page of raw account records and the next page token."""

    def set_disabled(self, uid: str, disabled: bool) -> None:
        """Enable or disable ``uid``; raise on failure."""


@dataclass
class DisableReport:
    """Per-id outcome of :meth:`DirectoryClient.disable_many`."""

    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


def _field(record: Any, attribute: str, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, attribute, None)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _optional_timestamp(value: Any) -> Any:
    # Epoch zero is a real instant; only absent or blank values mean "never".
    if value is None or value == "":
        return None
    return value


def _provider_from_record(record: Any) -> ProviderInfo:
    return ProviderInfo(
        id=str(_field(record, "uid", "uid") or ""),
        provider_kind=str(_field(record, "provider_id", "providerId") or ""),
        display_name=_optional_text(_field(record, "display_name", "displayName")),
        email=_optional_text(_field(record, "email", "email")),
        photo_url=_optional_text(_field(record, "photo_url", "photoURL")),
    )


def user_from_record(record: Any) -> User:
    """Normalise a directory record into a :class:`User`.

    Accepts Firebase Admin ``UserRecord`` objects as well as mappings using
    the camelCase keys of the Firebase REST and JavaScript representations.
    """

    uid = _field(record, "uid", "uid")
    if not uid:
        raise DirectoryError("Directory returned a record without a uid")

    if isinstance(record, Mapping):
        created_at = record.get("creationTime")
        last_sign_in_at = record.get("lastSignInTime")
    else:
        metadata = getattr(record, "user_metadata", None)
        created_at = getattr(metadata, "creation_timestamp", None)
        last_sign_in_at = getattr(metadata, "last_sign_in_timestamp", None)

    claims = _field(record, "custom_claims", "customClaims") or {}
    providers = _field(record, "provider_data", "providerData") or []

    return User(
        id=str(uid),
        email=_optional_text(_field(record, "email", "email")),
        display_name=_optional_text(_field(record, "display_name", "displayName")),
        photo_url=_optional_text(_field(record, "photo_url", "photoURL")),
        email_verified=bool(_field(record, "email_verified", "emailVerified")),
        disabled=bool(_field(record, "disabled", "disabled")),
        created_at=_optional_timestamp(created_at),
        last_sign_in_at=_optional_timestamp(last_sign_in_at),
        custom_claims=dict(claims),
        providers=tuple(_provider_from_record(item) for item in providers),
    )


class DirectoryClient:
    """Paginates the directory and issues bulk account updates."""

    def __init__(
        self,
        service: DirectoryService,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_workers: Optional[int] = None,
    ) -> None:
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be a positive integer")
        self._service = service
        self._page_size = page_size
        self._max_workers = max_workers

    @property
    def page_size(self) -> int:
        return self._page_size

    def fetch_page(self, page_token: Optional[str] = None) -> Tuple[List[User], Optional[str]]:
        try:
            records, next_token = self._service.list_page(self._page_size, page_token)
        except DirectoryError:
            raise
        except Exception as exc:
            raise DirectoryError(f"Failed to list directory users: {exc}") from exc

        users = [user_from_record(record) for record in records]
        return users, next_token or None

    def fetch_all(self) -> DirectorySnapshot:
        """Follow page tokens until the directory is exhausted.

        Any page failure propagates; callers never see a partial snapshot.
        """

        started_at = datetime.now(timezone.utc)
        users: List[User] = []
        seen_tokens = set()
        page_token: Optional[str] = None
        pages = 0

        while True:
            page, page_token = self.fetch_page(page_token)
            pages += 1
            users.extend(page)
            logger.debug("Fetched directory page %d with %d users", pages, len(page))
            if page_token is None:
                break
            if page_token in seen_tokens:
                raise DirectoryError(f"Directory repeated page token {page_token!r}")
            seen_tokens.add(page_token)

        logger.info("Fetched %d users across %d page(s)", len(users), pages)
        return DirectorySnapshot(users=tuple(users), started_at=started_at)

    def _disable_one(self, uid: str) -> Optional[str]:
        try:
            self._service.set_disabled(uid, True)
        except Exception as exc:
            return str(exc) or exc.__class__.__name__
        return None

    def disable_many(self, uids: Iterable[str]) -> DisableReport:
        """Disable every id concurrently and wait for all of them to finish.

        Each id succeeds or fails independently; failures are reported, not raised.
        """

        targets = list(dict.fromkeys(uids))
        report = DisableReport()
        if not targets:
            return report

        workers = min(len(targets), self._max_workers or len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="usermirror-disable") as pool:
            outcomes = list(pool.map(self._disable_one, targets))

        for uid, error in zip(targets, outcomes):
            if error is None:
                report.succeeded.append(uid)
            else:
                report.failed[uid] = error
        return report


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DirectoryClient",
    "DirectoryService",
    "DisableReport",
    "user_from_record",
]
