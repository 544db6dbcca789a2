"""Local mirror of a remote identity directory with duplicate-account remediation."""

from __future__ import annotations

from typing import Any

from .classifier import classify
from .database import MirrorStore, resolve_database_path
from .directory import DirectoryClient, DirectoryService
from .engine import SyncEngine, build_engine
from .models import DirectorySnapshot, RemediationResult, SyncResult, User


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP trigger application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "DirectoryClient",
    "DirectoryService",
    "DirectorySnapshot",
    "MirrorStore",
    "RemediationResult",
    "SyncEngine",
    "SyncResult",
    "User",
    "build_engine",
    "classify",
    "create_app",
    "resolve_database_path",
]
