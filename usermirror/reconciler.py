"""Full-directory reconciliation into the local mirror."""
from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Iterable

from .classifier import classify
from .database import MirrorStore
from .directory import DirectoryClient
from .models import SyncResult, User

logger = logging.getLogger("usermirror.reconciler")

Classifier = Callable[[Iterable[User]], FrozenSet[str]]


class Reconciler:
    """Make the mirror an exact copy of the directory as of the fetch.

    The whole snapshot is fetched before anything is written, so a page
    failure leaves the mirror untouched. Deletion is decided solely by
    absence from the snapshot and only after every upsert has landed.
    """

    def __init__(
        self,
        client: DirectoryClient,
        store: MirrorStore,
        *,
        classifier: Classifier = classify,
    ) -> None:
        self._client = client
        self._store = store
        self._classifier = classifier

    def run(self) -> SyncResult:
        logger.info("Starting user sync")
        snapshot = self._client.fetch_all()

        suspicious = self._classifier(snapshot)
        logger.info(
            "Flagged %d of %d users as suspicious",
            len(suspicious),
            len(snapshot),
        )

        self._store.upsert_many((user, user.id in suspicious) for user in snapshot)

        stale = self._store.all_ids() - snapshot.ids()
        if stale:
            removed = self._store.delete_many(sorted(stale))
            logger.info("Removed %d user(s) no longer present in the directory", removed)

        logger.info("User sync completed. Total users: %d", len(snapshot))
        return SyncResult(success=True, total=len(snapshot))


__all__ = ["Reconciler"]
