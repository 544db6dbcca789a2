"""Batched, rate-limited disabling of suspicious accounts."""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Sequence

from .database import MirrorStore
from .directory import DirectoryClient
from .models import RemediationResult

logger = logging.getLogger("usermirror.remediation")

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_DELAY = 1.0


def partition(items: Sequence[str], size: int) -> List[List[str]]:
    """Split ``items`` into consecutive chunks of at most ``size`` entries."""

    if size < 1:
        raise ValueError("Batch size must be a positive integer")
    return [list(items[index : index + size]) for index in range(0, len(items), size)]


class RemediationBatcher:
    """Disable suspicious, still-enabled accounts remotely and in the mirror.

    Batches run one after another with a blocking pause in between; the
    disables inside a batch run concurrently. A failed id is logged and left
    enabled for the next run to pick up again.
    """

    def __init__(
        self,
        client: DirectoryClient,
        store: MirrorStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("Batch size must be a positive integer")
        if batch_delay < 0:
            raise ValueError("Batch delay must not be negative")
        self._client = client
        self._store = store
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

    def run(self) -> RemediationResult:
        logger.info("Starting auto-disable of suspicious users")
        targets = sorted(self._store.suspicious_enabled_ids())
        if not targets:
            logger.info("No suspicious users to disable.")
            return RemediationResult(success=True, disabled_count=0)

        batches = partition(targets, self._batch_size)
        disabled_count = 0
        failed: List[str] = []

        for number, batch in enumerate(batches, start=1):
            if number > 1 and self._batch_delay:
                self._sleep(self._batch_delay)

            logger.info("Disabling batch %d/%d: %d users...", number, len(batches), len(batch))
            report = self._client.disable_many(batch)

            for uid in report.succeeded:
                self._store.set_disabled(uid, True)
            disabled_count += len(report.succeeded)

            for uid, error in report.failed.items():
                logger.warning("Failed to disable user %s: %s", uid, error)
                failed.append(uid)

        logger.info(
            "Auto-disable completed. Disabled %d users (%d failed).",
            disabled_count,
            len(failed),
        )
        return RemediationResult(
            success=True,
            disabled_count=disabled_count,
            failed=tuple(failed),
        )


__all__ = ["DEFAULT_BATCH_DELAY", "DEFAULT_BATCH_SIZE", "RemediationBatcher", "partition"]
