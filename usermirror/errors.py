"""Exceptions raised by the directory mirror."""
from __future__ import annotations


class UserMirrorError(RuntimeError):
    """Base class for failures surfaced by the mirror engine."""


class DirectoryError(UserMirrorError):
    """Raised when a call to the remote identity directory fails."""

    def __init__(self, message: str, *, uid: str | None = None) -> None:
        super().__init__(message)
        self.uid = uid


class MirrorStoreError(UserMirrorError):
    """Raised when the local mirror database cannot be read or written."""


__all__ = ["DirectoryError", "MirrorStoreError", "UserMirrorError"]
