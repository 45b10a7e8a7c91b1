"""
Tests for ballot item status resolution

Covers the inclusive date boundaries and how the stored status interacts
with the computed one (drafts, manual early closure).
"""

from datetime import datetime, timedelta, timezone

import pytest

from database.models import BallotItem, CollectionKind, ItemStatus
from voting.status import effective_status, resolve_status

START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 10, tzinfo=timezone.utc)
EPSILON = timedelta(microseconds=1)


def make_item(status: str = "active", start=START, end=END) -> BallotItem:
    return BallotItem(
        id="el1",
        kind=CollectionKind.ELECTION,
        title="Council",
        start_date=start,
        end_date=end,
        status=status,
    )


class TestResolveStatus:
    """Date-derived status with inclusive bounds"""

    def test_mid_window_is_active(self):
        assert resolve_status(START, END, datetime(2025, 1, 5, tzinfo=timezone.utc)) == ItemStatus.ACTIVE

    def test_start_instant_is_active(self):
        assert resolve_status(START, END, START) == ItemStatus.ACTIVE

    def test_end_instant_is_active(self):
        assert resolve_status(START, END, END) == ItemStatus.ACTIVE

    def test_just_before_start_is_scheduled(self):
        assert resolve_status(START, END, START - EPSILON) == ItemStatus.SCHEDULED

    def test_just_after_end_is_closed(self):
        assert resolve_status(START, END, END + EPSILON) == ItemStatus.CLOSED

    def test_zero_length_window(self):
        """start == end is active at exactly that instant"""
        assert resolve_status(START, START, START) == ItemStatus.ACTIVE
        assert resolve_status(START, START, START + EPSILON) == ItemStatus.CLOSED

    @pytest.mark.parametrize("days", [0, 1, 3, 9])
    def test_every_day_in_window_is_active(self, days):
        assert resolve_status(START, END, START + timedelta(days=days)) == ItemStatus.ACTIVE


class TestEffectiveStatus:
    """Stored status is advisory except for drafts and manual closure"""

    def test_stored_status_ignored_when_consistent(self):
        item = make_item(status="scheduled")
        now = datetime(2025, 1, 5, tzinfo=timezone.utc)
        assert effective_status(item, now, honor_manual_closure=True) == ItemStatus.ACTIVE

    def test_draft_never_opens(self):
        item = make_item(status="draft")
        assert effective_status(item, START, honor_manual_closure=True) == ItemStatus.DRAFT

    def test_manual_closure_ends_voting_early(self):
        item = make_item(status="closed")
        assert effective_status(item, START, honor_manual_closure=True) == ItemStatus.CLOSED

    def test_manual_closure_disabled_uses_dates(self):
        item = make_item(status="closed")
        assert effective_status(item, START, honor_manual_closure=False) == ItemStatus.ACTIVE

    def test_stored_active_never_reopens_after_end(self):
        item = make_item(status="active")
        assert effective_status(item, END + EPSILON, honor_manual_closure=True) == ItemStatus.CLOSED

    def test_stored_active_does_not_open_early(self):
        item = make_item(status="active")
        assert effective_status(item, START - EPSILON, honor_manual_closure=True) == ItemStatus.SCHEDULED
