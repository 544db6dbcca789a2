"""Duplicate-registration heuristic over a directory snapshot."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from .models import User
from .timestamps import utc_day

KEY_SEPARATOR = "_"


def group_key(user: User) -> str:
    """Lowercased display name and UTC creation day, joined by ``_``.

    Accounts without a display name and without a parsable creation time
    all share the key ``"_"``.
    """

    name = (user.display_name or "").lower()
    return f"{name}{KEY_SEPARATOR}{utc_day(user.created_at)}"


def group_users(users: Iterable[User]) -> Dict[str, List[str]]:
    groups: Dict[str, List[str]] = defaultdict(list)
    for user in users:
        groups[group_key(user)].append(user.id)
    return dict(groups)


def classify(users: Iterable[User]) -> frozenset[str]:
    """Return the ids of every account that shares its group key with another."""

    suspicious = set()
    for ids in group_users(users).values():
        if len(ids) > 1:
            suspicious.update(ids)
    return frozenset(suspicious)


__all__ = ["KEY_SEPARATOR", "classify", "group_key", "group_users"]
