"""Public entry points for syncing the mirror and remediating accounts."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import Settings
from .database import MirrorStore
from .directory import DirectoryClient, DirectoryService
from .errors import DirectoryError, MirrorStoreError
from .models import RemediationResult, SyncResult
from .reconciler import Reconciler
from .remediation import RemediationBatcher

logger = logging.getLogger("usermirror.engine")


@dataclass(frozen=True)
class ScheduledRunResult:
    """Results of the sync-then-remediate scheduled task."""

    sync: SyncResult
    remediation: Optional[RemediationResult]

    @property
    def success(self) -> bool:
        return self.sync.success and self.remediation is not None and self.remediation.success


class SyncEngine:
    """Runs the reconciliation and remediation passes one at a time.

    Both passes share the mirror, so they are serialised on a lock rather
    than by locking inside the store. Every failure is reported in the
    returned result; nothing is raised to the caller.
    """

    def __init__(
        self,
        client: DirectoryClient,
        store: MirrorStore,
        *,
        batch_size: int = 100,
        batch_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._reconciler = Reconciler(client, store)
        self._batcher = RemediationBatcher(
            client,
            store,
            batch_size=batch_size,
            batch_delay=batch_delay,
            sleep=sleep,
        )
        self._lock = threading.Lock()

    @property
    def store(self) -> MirrorStore:
        return self._store

    def sync(self) -> SyncResult:
        with self._lock:
            try:
                return self._reconciler.run()
            except DirectoryError as exc:
                logger.error("Failed to sync users: %s", exc)
                return SyncResult(success=False, error=str(exc))
            except MirrorStoreError as exc:
                logger.error("Failed to write the user mirror: %s", exc)
                return SyncResult(success=False, error=str(exc))
            except Exception as exc:
                logger.exception("Unhandled exception during user sync")
                return SyncResult(success=False, error=f"Unexpected error: {exc}")

    def auto_disable_suspicious(self) -> RemediationResult:
        with self._lock:
            try:
                return self._batcher.run()
            except (DirectoryError, MirrorStoreError) as exc:
                logger.error("Failed to auto-disable suspicious users: %s", exc)
                return RemediationResult(success=False, error=str(exc))
            except Exception as exc:
                logger.exception("Unhandled exception during auto-disable")
                return RemediationResult(success=False, error=f"Unexpected error: {exc}")

    def run_scheduled(self) -> ScheduledRunResult:
        """Sync the mirror, then remediate if the sync succeeded."""

        logger.info("Starting scheduled task: sync users and auto-disable suspicious...")
        sync_result = self.sync()
        if not sync_result.success:
            logger.error("Scheduled task aborted: %s", sync_result.error)
            return ScheduledRunResult(sync=sync_result, remediation=None)

        remediation = self.auto_disable_suspicious()
        if remediation.success:
            logger.info("Scheduled task completed successfully.")
        return ScheduledRunResult(sync=sync_result, remediation=remediation)


def build_engine(
    settings: Settings,
    *,
    service: Optional[DirectoryService] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncEngine:
    """Wire a :class:`SyncEngine` from settings, defaulting to Firebase."""

    store = MirrorStore(settings.database_path)
    store.initialize()

    if service is None:
        from .firebase import FirebaseDirectory, initialize_firebase

        service = FirebaseDirectory(initialize_firebase(settings))

    client = DirectoryClient(
        service,
        page_size=settings.page_size,
        max_workers=settings.max_workers,
    )
    return SyncEngine(
        client,
        store,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay_seconds,
        sleep=sleep,
    )


__all__ = ["ScheduledRunResult", "SyncEngine", "build_engine"]
