from __future__ import annotations

from conftest import sample_user
from usermirror.classifier import classify, group_key, group_users


def test_same_name_same_day_is_suspicious() -> None:
    users = [
        sample_user("A", display_name="Bob", created_at="2024-03-01T08:00:00Z"),
        sample_user("B", display_name="Bob", created_at="2024-03-01T21:15:00Z"),
        sample_user("C", display_name="Alice", created_at="2024-03-01T09:00:00Z"),
    ]
    assert classify(users) == {"A", "B"}


def test_name_comparison_ignores_case() -> None:
    users = [
        sample_user("A", display_name="Bob"),
        sample_user("B", display_name="BOB"),
    ]
    assert classify(users) == {"A", "B"}


def test_trailing_whitespace_is_not_normalised() -> None:
    users = [
        sample_user("A", display_name="Bob"),
        sample_user("B", display_name="Bob "),
    ]
    assert classify(users) == frozenset()


def test_different_days_do_not_collide() -> None:
    users = [
        sample_user("A", display_name="Bob", created_at="2024-03-01T23:59:59Z"),
        sample_user("B", display_name="Bob", created_at="2024-03-02T00:00:00Z"),
    ]
    assert classify(users) == frozenset()


def test_unnamed_accounts_without_dates_share_a_group() -> None:
    users = [
        sample_user("A", display_name=None, created_at=None),
        sample_user("B", display_name=None, created_at="not a date"),
        sample_user("C", display_name=None, created_at="2024-03-01T00:00:00Z"),
    ]
    assert group_key(users[0]) == "_"
    assert group_key(users[1]) == "_"
    assert group_key(users[2]) == "_2024-03-01"
    assert classify(users) == {"A", "B"}


def test_groups_of_three_flag_every_member() -> None:
    users = [sample_user(uid, display_name="Spam") for uid in ("x", "y", "z")]
    groups = group_users(users)
    assert groups == {"spam_2024-03-01": ["x", "y", "z"]}
    assert classify(users) == {"x", "y", "z"}


def test_classify_is_deterministic_over_order() -> None:
    users = [
        sample_user("A", display_name="Bob"),
        sample_user("B", display_name="Carol"),
        sample_user("C", display_name="bob"),
    ]
    assert classify(users) == classify(list(reversed(users)))
