"""Ballot item lifecycle status

Status is derived from the item's dates; the stored status field is what
the admin panel last wrote and is only consulted by effective_status().
"""

from datetime import datetime
from typing import Optional

from config import config
from database.models import BallotItem, ItemStatus


def resolve_status(start: datetime, end: datetime, now: datetime) -> ItemStatus:
    """Date-derived status with inclusive bounds on both ends"""
    if now < start:
        return ItemStatus.SCHEDULED
    if now > end:
        return ItemStatus.CLOSED
    return ItemStatus.ACTIVE


def effective_status(
    item: BallotItem,
    now: datetime,
    honor_manual_closure: Optional[bool] = None,
) -> ItemStatus:
    """Status used for vote admission and result visibility

    - A stored draft stays draft (unpublished items never open).
    - With manual closure honored, a stored "closed" ends voting early.
    - A stored "active" never reopens an item whose end date has passed.
    """
    if honor_manual_closure is None:
        honor_manual_closure = config.HONOR_MANUAL_CLOSURE

    stored = item.status
    if stored == ItemStatus.DRAFT.value:
        return ItemStatus.DRAFT

    computed = resolve_status(item.start_date, item.end_date, now)
    if honor_manual_closure and stored == ItemStatus.CLOSED.value:
        return ItemStatus.CLOSED
    return computed
