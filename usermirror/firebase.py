"""Firebase Authentication backend for the directory client."""
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence, Tuple

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from .config import Settings
from .errors import DirectoryError

logger = logging.getLogger("usermirror.firebase")


def _build_credential(settings: Settings) -> credentials.Base:
    if settings.firebase_credentials_json:
        try:
            service_account = json.loads(settings.firebase_credentials_json)
        except ValueError as exc:
            raise DirectoryError("FIREBASE_SERVICE_ACCOUNT_JSON is not valid JSON") from exc
        return credentials.Certificate(service_account)
    if settings.firebase_credentials_path:
        if not settings.firebase_credentials_path.exists():
            raise DirectoryError(
                f"Firebase credentials file not found: {settings.firebase_credentials_path}"
            )
        return credentials.Certificate(str(settings.firebase_credentials_path))
    return credentials.ApplicationDefault()


def initialize_firebase(settings: Settings) -> firebase_admin.App:
    """Return the default Firebase app, initialising it on first use."""

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    try:
        app = firebase_admin.initialize_app(_build_credential(settings), options)
    except (ValueError, OSError) as exc:
        raise DirectoryError(f"Failed to initialise Firebase Admin SDK: {exc}") from exc
    logger.info("Initialised Firebase Admin SDK for project %s", app.project_id or "<default>")
    return app


class FirebaseDirectory:
    """Expose Firebase Authentication through the directory service interface."""

    def __init__(self, app: Optional[firebase_admin.App] = None) -> None:
        self._app = app

    def list_page(
        self, page_size: int, page_token: Optional[str]
    ) -> Tuple[Sequence[Any], Optional[str]]:
        try:
            page = auth.list_users(page_token=page_token, max_results=page_size, app=self._app)
        except (FirebaseError, ValueError) as exc:
            raise DirectoryError(f"Failed to list Firebase users: {exc}") from exc
        return list(page.users), page.next_page_token or None

    def set_disabled(self, uid: str, disabled: bool) -> None:
        try:
            auth.update_user(uid, disabled=disabled, app=self._app)
        except (FirebaseError, ValueError) as exc:
            raise DirectoryError(f"Failed to update Firebase user {uid}: {exc}", uid=uid) from exc


__all__ = ["FirebaseDirectory", "initialize_firebase"]
