"""
Database Models for campusvote

Pydantic dataclasses with runtime validation for core entities.
Documents in the store keep the field names of the original mobile/admin
clients; repositories/helpers.py maps them onto these models.
"""

from dataclasses import asdict, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic.dataclasses import dataclass


class CollectionKind(str, Enum):
    """Elections and polls are structurally identical, stored apart by convention"""

    ELECTION = "election"
    POLL = "poll"


class ItemStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    CLOSED = "closed"


class ScopeType(str, Enum):
    ALL_FACULTIES = "ALL_FACULTIES"
    SINGLE_FACULTY = "SINGLE_FACULTY"
    MULTI_FACULTY = "MULTI_FACULTY"


class VoterRole(str, Enum):
    VOTER = "voter"
    ADMIN = "admin"


# Faculty names used by the university clients
FACULTIES = (
    "Engineering",
    "Medicine",
    "Business",
    "Science",
    "Arts",
    "Law",
    "Education",
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Voter:
    """Registered student or administrator account

    id is the identity provider's uid; it keys ballot records.
    """

    id: str
    university_id: Optional[str] = None
    name: Optional[str] = None
    faculty: Optional[str] = None  # None or "Unknown" for incomplete profiles
    major: Optional[str] = None
    contact_email: Optional[str] = None
    role: VoterRole = VoterRole.VOTER
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data["role"] = self.role.value
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        return data


@dataclass
class BallotItem:
    """Election or poll - a schedulable, faculty-scoped thing voters vote on

    status is the administrator's stored flag. It is advisory: admission
    decisions use voting.status.effective_status().
    """

    id: str
    kind: CollectionKind
    title: str
    start_date: datetime
    end_date: datetime
    description: Optional[str] = None
    scope_type: Optional[str] = None  # ScopeType value, None on legacy records
    scope_faculties: List[str] = field(default_factory=list)
    status: str = ItemStatus.DRAFT.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    seq: int = 0  # Store insertion order

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["start_date"] = _iso(self.start_date)
        data["end_date"] = _iso(self.end_date)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        data.pop("seq", None)
        return data


@dataclass
class Selection:
    """Candidate (elections) or option (polls) belonging to one ballot item"""

    id: str
    kind: CollectionKind
    item_id: str
    label: str  # Candidate name or option text
    faculty: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    order: Optional[int] = None  # Explicit display order (poll options)
    seq: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data["kind"] = self.kind.value
        data.pop("seq", None)
        return data


@dataclass
class BallotRecord:
    """Immutable vote cast by one voter for one selection within one item

    id is deterministic per (item, voter); see id_generation.
    """

    id: str
    kind: CollectionKind
    item_id: str
    voter_id: str
    selection_id: str
    faculty: Optional[str] = None
    timestamp: Optional[datetime] = None
    seq: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["timestamp"] = _iso(self.timestamp)
        data.pop("seq", None)
        return data
