"""Repository helper functions for document <-> model conversion.

Stored documents come from several clients over time, so builders are
tolerant: timestamps may be datetimes, ISO strings or epoch seconds, and
scope fields may be missing on legacy items.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from database.collections import CollectionLayout
from database.models import BallotItem, BallotRecord, Selection, Voter, VoterRole
from database.store import Document
from exceptions import DataIntegrityError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Normalize a stored timestamp to an aware UTC datetime.

    Naive datetimes are interpreted as UTC. Returns None for None/empty.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _clean_faculties(value: Any) -> List[str]:
    """Ordered, de-duplicated faculty list; tolerates a bare string"""
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    seen: Dict[str, None] = {}
    for faculty in value:
        if faculty and isinstance(faculty, str):
            seen.setdefault(faculty.strip(), None)
    return list(seen)


def build_voter(doc: Document) -> Voter:
    """Construct Voter from a Users document."""
    data = doc.data
    role = data.get("role") or VoterRole.VOTER.value
    return Voter(
        id=doc.id,
        university_id=data.get("university_id"),
        name=data.get("name"),
        faculty=data.get("faculty"),
        major=data.get("major"),
        contact_email=data.get("contact_email"),
        role=VoterRole(role) if role in {r.value for r in VoterRole} else VoterRole.VOTER,
        is_active=data.get("is_active", True),
        created_at=coerce_timestamp(data.get("created_at")),
        updated_at=coerce_timestamp(data.get("updated_at")),
    )


def build_ballot_item(doc: Document, layout: CollectionLayout) -> BallotItem:
    """Construct BallotItem from an Elections/Polls document.

    Raises:
        DataIntegrityError: If start_date or end_date is missing or unparseable
    """
    data = doc.data
    try:
        start = coerce_timestamp(data.get("start_date"))
        end = coerce_timestamp(data.get("end_date"))
    except ValueError as e:
        raise DataIntegrityError(
            f"Unreadable schedule on {layout.noun} {doc.id}: {e}",
            collection=layout.items,
        )
    if start is None or end is None:
        raise DataIntegrityError(
            f"{layout.noun.capitalize()} {doc.id} has no start/end date",
            collection=layout.items,
        )

    return BallotItem(
        id=doc.id,
        kind=layout.kind,
        title=data.get("title") or "",
        description=data.get("description"),
        scope_type=data.get(layout.scope_type_field),
        scope_faculties=_clean_faculties(data.get(layout.scope_list_field)),
        start_date=start,
        end_date=end,
        status=data.get("status") or "draft",
        created_at=coerce_timestamp(data.get("created_at")),
        updated_at=coerce_timestamp(data.get("updated_at")),
        seq=doc.seq,
    )


def build_selection(doc: Document, layout: CollectionLayout) -> Selection:
    """Construct Selection from a Candidates/PollOptions document."""
    data = doc.data
    order = data.get("order")
    return Selection(
        id=doc.id,
        kind=layout.kind,
        item_id=data.get(layout.item_fk) or "",
        label=data.get(layout.label_field) or "",
        faculty=data.get("faculty"),
        bio=data.get("bio"),
        photo_url=data.get("photo_url"),
        order=int(order) if isinstance(order, (int, float)) else None,
        seq=doc.seq,
    )


def build_ballot_record(doc: Document, layout: CollectionLayout) -> BallotRecord:
    """Construct BallotRecord from a Votes/PollVotes document."""
    data = doc.data
    return BallotRecord(
        id=doc.id,
        kind=layout.kind,
        item_id=data.get(layout.item_fk) or "",
        voter_id=data.get("user_id") or "",
        selection_id=data.get(layout.selection_fk) or "",
        faculty=data.get("faculty"),
        timestamp=coerce_timestamp(data.get("timestamp")),
        seq=doc.seq,
    )


def item_fields(layout: CollectionLayout, **values: Any) -> Dict[str, Any]:
    """Map model-level item fields onto the stored field names."""
    renames = {
        "scope_type": layout.scope_type_field,
        "scope_faculties": layout.scope_list_field,
    }
    return {renames.get(key, key): value for key, value in values.items()}


def selection_fields(layout: CollectionLayout, item_id: str, label: str, **extra: Any) -> Dict[str, Any]:
    """Stored fields for a new candidate/option."""
    fields = {layout.item_fk: item_id, layout.label_field: label}
    fields.update({k: v for k, v in extra.items() if v is not None})
    return fields
