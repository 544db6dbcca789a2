"""SQLite-backed mirror of the remote identity directory."""
from __future__ import annotations

import json
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable, List, Mapping, Optional, Set, Tuple

from .errors import MirrorStoreError
from .models import MirrorRow, ProviderInfo, User
from .timestamps import normalize_timestamp


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the mirror database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _serialize_claims(claims: Optional[Mapping[str, Any]]) -> str:
    return json.dumps(dict(claims or {}), sort_keys=True, default=str)


def _serialize_providers(providers: Iterable[ProviderInfo]) -> str:
    return json.dumps([provider.to_dict() for provider in providers])


def _load_json(raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


# Columns added after the first schema revision.
_LATE_COLUMNS = {
    "disabled": "INTEGER NOT NULL DEFAULT 0",
    "suspicious": "INTEGER NOT NULL DEFAULT 0",
}

_UPSERT_SQL = """
    INSERT OR REPLACE INTO users (
        uid,
        email,
        display_name,
        photo_url,
        email_verified,
        disabled,
        creation_time,
        last_sign_in_time,
        custom_claims,
        provider_data,
        suspicious
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _row_parameters(user: User, suspicious: bool) -> Tuple[object, ...]:
    return (
        user.id,
        user.email,
        user.display_name,
        user.photo_url,
        1 if user.email_verified else 0,
        1 if user.disabled else 0,
        normalize_timestamp(user.created_at),
        normalize_timestamp(user.last_sign_in_at),
        _serialize_claims(user.custom_claims),
        _serialize_providers(user.providers),
        1 if suspicious else 0,
    )


class MirrorStore:
    """Local copy of the directory, keyed by account id.

    The reconciler owns structural writes (``upsert*`` and ``delete*``);
    remediation only ever touches the ``disabled`` column through
    :meth:`set_disabled`.
    """

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            with closing(self._connect()) as conn, conn:
                yield conn
        except sqlite3.Error as exc:
            raise MirrorStoreError(f"Mirror database error: {exc}") from exc

    def initialize(self) -> None:
        """Create the mirror table if it does not already exist."""

        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    uid TEXT PRIMARY KEY,
                    email TEXT,
                    display_name TEXT,
                    photo_url TEXT,
                    email_verified INTEGER NOT NULL DEFAULT 0,
                    disabled INTEGER NOT NULL DEFAULT 0,
                    creation_time TEXT,
                    last_sign_in_time TEXT,
                    custom_claims TEXT NOT NULL DEFAULT '{}',
                    provider_data TEXT NOT NULL DEFAULT '[]',
                    suspicious INTEGER NOT NULL DEFAULT 0
                );
                """
            )

            columns = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(users)").fetchall()
            }
            for name, definition in _LATE_COLUMNS.items():
                if name not in columns:
                    conn.execute(f"ALTER TABLE users ADD COLUMN {name} {definition}")

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_suspicious_disabled "
                "ON users(suspicious, disabled)"
            )

    # ------------------------------------------------------------------
    # Structural writes (reconciler)
    # ------------------------------------------------------------------
    def upsert(self, user: User, suspicious: bool) -> None:
        """Replace every stored field of ``user`` in a single statement."""

        with self._transaction() as conn:
            conn.execute(_UPSERT_SQL, _row_parameters(user, suspicious))

    def upsert_many(self, rows: Iterable[Tuple[User, bool]]) -> int:
        """Upsert a batch of ``(user, suspicious)`` pairs in one transaction."""

        parameters = [_row_parameters(user, suspicious) for user, suspicious in rows]
        if not parameters:
            return 0
        with self._transaction() as conn:
            conn.executemany(_UPSERT_SQL, parameters)
        return len(parameters)

    def delete_by_id(self, uid: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE uid = ?", (uid,))
        return cursor.rowcount > 0

    def delete_many(self, uids: Iterable[str]) -> int:
        parameters = [(uid,) for uid in uids]
        if not parameters:
            return 0
        with self._transaction() as conn:
            conn.executemany("DELETE FROM users WHERE uid = ?", parameters)
        return len(parameters)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def all_ids(self) -> Set[str]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT uid FROM users").fetchall()
        return {row["uid"] for row in rows}

    def suspicious_enabled_ids(self) -> Set[str]:
        """Ids flagged suspicious by the last sync that are still enabled."""

        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT uid FROM users WHERE suspicious = 1 AND disabled = 0"
            ).fetchall()
        return {row["uid"] for row in rows}

    def get_row(self, uid: str) -> Optional[MirrorRow]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE uid = ?", (uid,)).fetchone()
        if row is None:
            return None
        return self._row_to_mirror_row(row)

    def list_rows(self) -> List[MirrorRow]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY uid").fetchall()
        return [self._row_to_mirror_row(row) for row in rows]

    def count(self) -> int:
        with self._transaction() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        return int(row["total"])

    # ------------------------------------------------------------------
    # Remediation
    # ------------------------------------------------------------------
    def set_disabled(self, uid: str, disabled: bool) -> bool:
        """Update only the ``disabled`` column; returns ``False`` for unknown ids."""

        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE users SET disabled = ? WHERE uid = ?",
                (1 if disabled else 0, uid),
            )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_mirror_row(row: sqlite3.Row) -> MirrorRow:
        providers = tuple(
            ProviderInfo.from_dict(item)
            for item in _load_json(row["provider_data"], [])
            if isinstance(item, dict)
        )
        user = User(
            id=row["uid"],
            email=row["email"],
            display_name=row["display_name"],
            photo_url=row["photo_url"],
            email_verified=bool(row["email_verified"]),
            disabled=bool(row["disabled"]),
            created_at=row["creation_time"],
            last_sign_in_at=row["last_sign_in_time"],
            custom_claims=_load_json(row["custom_claims"], {}),
            providers=providers,
        )
        return MirrorRow(user=user, suspicious=bool(row["suspicious"]))


__all__ = ["MirrorStore", "resolve_database_path"]
