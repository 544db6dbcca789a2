"""Configuration management for the directory mirror."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .directory import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .remediation import DEFAULT_BATCH_DELAY, DEFAULT_BATCH_SIZE


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    candidate = Path(str(raw)).expanduser()
    if not candidate.is_absolute() and base_path is not None:
        candidate = base_path / candidate
    return candidate.resolve(strict=False)


def _positive_int(data: Mapping[str, object], key: str, default: int) -> int:
    raw = data.get(key, default)
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Configuration field '{key}' must be an integer") from exc
    if value < 1:
        raise ValueError(f"Configuration field '{key}' must be a positive integer")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings for syncing and remediation."""

    database_path: Path
    page_size: int = DEFAULT_PAGE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY
    max_workers: Optional[int] = None
    firebase_credentials_path: Optional[Path] = None
    firebase_credentials_json: Optional[str] = None
    firebase_project_id: Optional[str] = None

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        raw_db = data.get("database_path")
        database_path = _resolve_path(raw_db, base_path) if raw_db else resolve_database_path(None)

        page_size = _positive_int(data, "page_size", DEFAULT_PAGE_SIZE)
        if page_size > MAX_PAGE_SIZE:
            raise ValueError(f"Configuration field 'page_size' must not exceed {MAX_PAGE_SIZE}")

        try:
            batch_delay = float(data.get("batch_delay_seconds", DEFAULT_BATCH_DELAY))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("Configuration field 'batch_delay_seconds' must be a number") from exc
        if batch_delay < 0:
            raise ValueError("Configuration field 'batch_delay_seconds' must not be negative")

        max_workers = None
        if data.get("max_workers") is not None:
            max_workers = _positive_int(data, "max_workers", DEFAULT_BATCH_SIZE)

        firebase: Mapping[str, object] = data.get("firebase") or {}  # type: ignore[assignment]
        if not isinstance(firebase, Mapping):
            raise ValueError("Configuration field 'firebase' must be a mapping")
        credentials = firebase.get("credentials_path")

        return Settings(
            database_path=database_path,
            page_size=page_size,
            batch_size=_positive_int(data, "batch_size", DEFAULT_BATCH_SIZE),
            batch_delay_seconds=batch_delay,
            max_workers=max_workers,
            firebase_credentials_path=_resolve_path(credentials, base_path) if credentials else None,
            firebase_project_id=str(firebase["project_id"]) if firebase.get("project_id") else None,
        )

    def with_environment(self, environ: Mapping[str, str] | None = None) -> "Settings":
        """Apply deployment overrides from environment variables."""

        env = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}

        if env.get("USERMIRROR_DB_PATH"):
            overrides["database_path"] = resolve_database_path(env["USERMIRROR_DB_PATH"])
        if env.get("GOOGLE_APPLICATION_CREDENTIALS"):
            overrides["firebase_credentials_path"] = _resolve_path(
                env["GOOGLE_APPLICATION_CREDENTIALS"], None
            )
        if env.get("FIREBASE_SERVICE_ACCOUNT_JSON"):
            overrides["firebase_credentials_json"] = env["FIREBASE_SERVICE_ACCOUNT_JSON"]
        if env.get("FIREBASE_PROJECT_ID"):
            overrides["firebase_project_id"] = env["FIREBASE_PROJECT_ID"]

        return replace(self, **overrides) if overrides else self


def load_settings(config_path: Path, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults if it is absent."""

    raw: object = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, Mapping):
        raise ValueError("Configuration file must contain a mapping at the top level")

    settings = Settings.from_dict(raw, base_path=config_path.parent)
    return settings.with_environment(environ)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "usermirror.yaml").resolve(strict=False)
    return candidate


__all__ = ["Settings", "load_settings", "resolve_config_path"]
