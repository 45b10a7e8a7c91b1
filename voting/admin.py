"""Administrator operations: ballot items, candidates/options and voters

All input is validated before any write; a ValidationError names the
offending field so the admin panel can highlight it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from config import get_logger
from database.db import Database
from database.models import FACULTIES, CollectionKind, ItemStatus, ScopeType, Voter, VoterRole
from database.repositories_async.helpers import coerce_timestamp
from exceptions import DocumentConflictError, NotFoundError, ValidationError

logger = get_logger(__name__).bind(component="admin")

MIN_POLL_OPTIONS = 2
MAX_TITLE_LENGTH = 200

_STATUSES = {s.value for s in ItemStatus}
_SCOPE_TYPES = {s.value for s in ScopeType}


@dataclass
class ItemDraft:
    """Administrator input for creating or replacing a ballot item"""

    title: str
    start_date: Any
    end_date: Any
    scope_type: Optional[str]
    scope_faculties: List[str] = field(default_factory=list)
    description: Optional[str] = None
    status: str = ItemStatus.DRAFT.value
    options: Optional[List[str]] = None  # Polls only


@dataclass
class ValidatedItem:
    title: str
    start_date: datetime
    end_date: datetime
    scope_type: str
    scope_faculties: List[str]
    description: Optional[str]
    status: str
    options: Optional[List[str]]


def _parse_date(value: Any, field_name: str) -> datetime:
    try:
        parsed = coerce_timestamp(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid date", field=field_name, value=value)
    if parsed is None:
        raise ValidationError(f"{field_name} is required", field=field_name)
    return parsed


def normalize_scope(scope_type: Optional[str], faculties: Optional[List[str]]) -> List[str]:
    """Validate a scope and return its stored faculty list

    Raises:
        ValidationError: Unknown scope type, or faculty count wrong for the type
    """
    if not scope_type:
        raise ValidationError("Faculty scope type is required", field="scope_type")
    if scope_type not in _SCOPE_TYPES:
        raise ValidationError(
            f"Scope type must be one of {sorted(_SCOPE_TYPES)}", field="scope_type", value=scope_type
        )

    if scope_type == ScopeType.ALL_FACULTIES.value:
        return []

    cleaned: List[str] = []
    for faculty in faculties or []:
        name = (faculty or "").strip()
        if name and name not in cleaned:
            cleaned.append(name)

    if not cleaned:
        raise ValidationError("Select at least one faculty", field="scope_faculties")
    if scope_type == ScopeType.SINGLE_FACULTY.value and len(cleaned) != 1:
        raise ValidationError(
            "Single-faculty scope takes exactly one faculty",
            field="scope_faculties",
            value=cleaned,
        )

    unknown = [f for f in cleaned if f not in FACULTIES]
    if unknown:
        logger.warning("scope names faculties outside the known list", faculties=unknown)
    return cleaned


def validate_item(kind: CollectionKind, draft: ItemDraft) -> ValidatedItem:
    """Check an item draft; raises ValidationError on the first problem"""
    title = (draft.title or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title is longer than {MAX_TITLE_LENGTH} characters", field="title")

    scope_faculties = normalize_scope(draft.scope_type, draft.scope_faculties)

    start = _parse_date(draft.start_date, "start_date")
    end = _parse_date(draft.end_date, "end_date")
    if end <= start:
        raise ValidationError("End date must be after start date", field="end_date")

    if draft.status not in _STATUSES:
        raise ValidationError(
            f"Status must be one of {sorted(_STATUSES)}", field="status", value=draft.status
        )

    options = None
    if CollectionKind(kind) == CollectionKind.POLL:
        options = validate_options(draft.options)

    return ValidatedItem(
        title=title,
        start_date=start,
        end_date=end,
        scope_type=draft.scope_type,
        scope_faculties=scope_faculties,
        description=(draft.description or "").strip() or None,
        status=draft.status,
        options=options,
    )


def validate_options(options: Optional[List[str]]) -> List[str]:
    cleaned = [(text or "").strip() for text in options or []]
    cleaned = [text for text in cleaned if text]
    if len(cleaned) < MIN_POLL_OPTIONS:
        raise ValidationError(
            f"A poll needs at least {MIN_POLL_OPTIONS} options", field="options", value=len(cleaned)
        )
    return cleaned


class AdminService:
    """Write operations for the admin panel

    Usage:
        admin = AdminService(db)
        poll_id = await admin.create_item(CollectionKind.POLL, ItemDraft(...))
    """

    def __init__(self, db: Database):
        self.db = db

    async def create_item(self, kind: CollectionKind, draft: ItemDraft) -> str:
        """Validate and store an election or poll (with its options)"""
        kind = CollectionKind(kind)
        valid = validate_item(kind, draft)

        item_id = await self.db.items.create_item(
            kind,
            title=valid.title,
            start_date=valid.start_date,
            end_date=valid.end_date,
            scope_type=valid.scope_type,
            scope_faculties=valid.scope_faculties,
            description=valid.description,
            status=valid.status,
        )
        if valid.options:
            await self._store_options(item_id, valid.options)

        logger.info("admin created item", kind=kind.value, item_id=item_id, scope=valid.scope_type)
        return item_id

    async def update_item(self, kind: CollectionKind, item_id: str, draft: ItemDraft) -> None:
        """Replace an item's fields; poll options are replaced when given

        Raises:
            NotFoundError: If the item does not exist
            ValidationError: If the draft is invalid
        """
        kind = CollectionKind(kind)
        existing = await self.db.items.get_item(kind, item_id)
        if existing is None:
            raise NotFoundError(f"{kind.value.capitalize()} not found", entity=kind.value, entity_id=item_id)

        replace_options = kind == CollectionKind.POLL and draft.options is not None
        if kind == CollectionKind.POLL and draft.options is None:
            # Keep current options; validate the rest of the draft against them
            current = await self.db.selections.get_selections_for_item(kind, item_id)
            draft = replace(draft, options=[s.label for s in current])

        valid = validate_item(kind, draft)
        await self.db.items.update_item(
            kind,
            item_id,
            {
                "title": valid.title,
                "description": valid.description,
                "start_date": valid.start_date,
                "end_date": valid.end_date,
                "scope_type": valid.scope_type,
                "scope_faculties": valid.scope_faculties,
                "status": valid.status,
            },
        )

        if replace_options:
            await self.db.selections.delete_selections_for_item(kind, item_id)
            await self._store_options(item_id, valid.options)

        logger.info("admin updated item", kind=kind.value, item_id=item_id, options_replaced=replace_options)

    async def set_status(self, kind: CollectionKind, item_id: str, status: str) -> None:
        """Change only the stored status (publish, close early)"""
        if status not in _STATUSES:
            raise ValidationError(f"Status must be one of {sorted(_STATUSES)}", field="status", value=status)
        if not await self.db.items.update_item(kind, item_id, {"status": status}):
            raise NotFoundError("Item not found", entity=CollectionKind(kind).value, entity_id=item_id)
        logger.info("admin set item status", kind=CollectionKind(kind).value, item_id=item_id, status=status)

    async def delete_item(self, kind: CollectionKind, item_id: str) -> int:
        """Delete an item and its selections; ballot records are kept

        Returns:
            Number of selections removed
        """
        kind = CollectionKind(kind)
        if not await self.db.items.delete_item(kind, item_id):
            raise NotFoundError(f"{kind.value.capitalize()} not found", entity=kind.value, entity_id=item_id)
        removed = await self.db.selections.delete_selections_for_item(kind, item_id)
        logger.info("admin deleted item", kind=kind.value, item_id=item_id, selections_removed=removed)
        return removed

    async def add_candidate(
        self,
        election_id: str,
        name: str,
        faculty: Optional[str] = None,
        bio: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Candidate name is required", field="name")
        if await self.db.items.get_item(CollectionKind.ELECTION, election_id) is None:
            raise NotFoundError("Election not found", entity="election", entity_id=election_id)

        candidate_id = await self.db.selections.create_selection(
            CollectionKind.ELECTION,
            election_id,
            name,
            faculty=(faculty or "").strip() or None,
            bio=bio,
            photo_url=photo_url,
        )
        logger.info("admin added candidate", election_id=election_id, candidate_id=candidate_id)
        return candidate_id

    async def delete_selection(self, kind: CollectionKind, selection_id: str) -> None:
        """Remove a candidate/option; existing ballot records still count in totals"""
        kind = CollectionKind(kind)
        if not await self.db.selections.delete_selection(kind, selection_id):
            raise NotFoundError("Selection not found", entity="selection", entity_id=selection_id)
        logger.info("admin deleted selection", kind=kind.value, selection_id=selection_id)

    async def register_voter(
        self,
        voter_id: str,
        university_id: str,
        name: str,
        faculty: Optional[str],
        major: Optional[str] = None,
        contact_email: Optional[str] = None,
        role: str = VoterRole.VOTER.value,
    ) -> str:
        """Create a Users document keyed by the identity provider uid

        Raises:
            ValidationError: Missing required field, bad role, or uid already registered
        """
        for field_name, value in (("voter_id", voter_id), ("university_id", university_id), ("name", name)):
            if not (value or "").strip():
                raise ValidationError(f"{field_name} is required", field=field_name)
        if role not in {r.value for r in VoterRole}:
            raise ValidationError("Role must be voter or admin", field="role", value=role)

        voter = Voter(
            id=voter_id.strip(),
            university_id=university_id.strip(),
            name=name.strip(),
            faculty=(faculty or "").strip() or None,
            major=major,
            contact_email=contact_email,
            role=VoterRole(role),
        )
        try:
            return await self.db.voters.create_voter(voter)
        except DocumentConflictError:
            raise ValidationError("A voter with this id is already registered", field="voter_id", value=voter_id)

    async def set_voter_active(self, voter_id: str, is_active: bool) -> None:
        if not await self.db.voters.set_active(voter_id, is_active):
            raise NotFoundError("Voter not found", entity="voter", entity_id=voter_id)
        logger.info("admin set voter active flag", voter_id=voter_id, is_active=is_active)

    async def update_voter(self, voter_id: str, changes: Dict[str, Any]) -> None:
        """Update profile fields (name, faculty, major, contact_email)"""
        allowed = {"name", "faculty", "major", "contact_email", "university_id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot update fields: {sorted(unknown)}", field=sorted(unknown)[0])
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("Name cannot be empty", field="name")
        if not await self.db.voters.update_voter(voter_id, changes):
            raise NotFoundError("Voter not found", entity="voter", entity_id=voter_id)

    async def _store_options(self, poll_id: str, options: List[str]) -> None:
        for index, text in enumerate(options):
            await self.db.selections.create_selection(CollectionKind.POLL, poll_id, text, order=index)
