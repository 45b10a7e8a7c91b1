"""
Tests for AdminService and item validation

Covers field-level validation errors, poll option storage, updates,
cascading deletes and voter management.
"""

import pytest

from conftest import END, START, run
from database.models import CollectionKind, ScopeType
from exceptions import NotFoundError, ValidationError
from voting.admin import AdminService, ItemDraft, normalize_scope, validate_item

ELECTION = CollectionKind.ELECTION
POLL = CollectionKind.POLL


def make_draft(**overrides) -> ItemDraft:
    values = dict(
        title="Student Council 2025",
        start_date=START,
        end_date=END,
        scope_type=ScopeType.ALL_FACULTIES.value,
        scope_faculties=[],
        description="Annual council election",
        status="active",
        options=None,
    )
    values.update(overrides)
    return ItemDraft(**values)


@pytest.fixture
def admin(db) -> AdminService:
    return AdminService(db)


class TestValidation:

    @pytest.mark.parametrize("overrides,field", [
        ({"title": "   "}, "title"),
        ({"title": "x" * 201}, "title"),
        ({"scope_type": None}, "scope_type"),
        ({"scope_type": "SOME_FACULTIES"}, "scope_type"),
        ({"scope_type": ScopeType.SINGLE_FACULTY.value, "scope_faculties": []}, "scope_faculties"),
        ({"scope_type": ScopeType.SINGLE_FACULTY.value, "scope_faculties": ["Law", "Arts"]}, "scope_faculties"),
        ({"scope_type": ScopeType.MULTI_FACULTY.value, "scope_faculties": ["  "]}, "scope_faculties"),
        ({"start_date": None}, "start_date"),
        ({"end_date": "not a date"}, "end_date"),
        ({"end_date": START}, "end_date"),
        ({"start_date": END, "end_date": START}, "end_date"),
        ({"status": "archived"}, "status"),
    ])
    def test_invalid_election_draft(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_item(ELECTION, make_draft(**overrides))
        assert exc_info.value.field == field

    @pytest.mark.parametrize("options", [None, [], ["Only one"], ["Yes", "  "]])
    def test_poll_needs_two_options(self, options):
        with pytest.raises(ValidationError) as exc_info:
            validate_item(POLL, make_draft(options=options))
        assert exc_info.value.field == "options"

    def test_valid_draft_is_normalized(self):
        valid = validate_item(
            POLL,
            make_draft(
                title="  Library hours  ",
                description="   ",
                start_date="2025-01-01T00:00:00Z",
                options=[" Yes ", "No", ""],
            ),
        )
        assert valid.title == "Library hours"
        assert valid.description is None
        assert valid.start_date == START
        assert valid.options == ["Yes", "No"]

    def test_all_faculties_scope_drops_list(self):
        assert normalize_scope(ScopeType.ALL_FACULTIES.value, ["Law"]) == []

    def test_scope_faculties_deduplicated(self):
        assert normalize_scope(ScopeType.MULTI_FACULTY.value, ["Law", " Law", "Arts"]) == ["Law", "Arts"]


class TestItems:

    def test_create_poll_stores_options_in_order(self, admin, db):
        async def scenario():
            poll_id = await admin.create_item(POLL, make_draft(options=["Yes", "No", "Abstain"]))
            return await db.selections.get_selections_for_item(POLL, poll_id)

        options = run(scenario())
        assert [(o.label, o.order) for o in options] == [("Yes", 0), ("No", 1), ("Abstain", 2)]

    def test_create_election_persists_fields(self, admin, db):
        async def scenario():
            election_id = await admin.create_item(
                ELECTION,
                make_draft(
                    scope_type=ScopeType.MULTI_FACULTY.value,
                    scope_faculties=["Law", "Arts"],
                ),
            )
            return await db.items.get_item(ELECTION, election_id)

        item = run(scenario())
        assert item.title == "Student Council 2025"
        assert item.scope_type == ScopeType.MULTI_FACULTY.value
        assert item.scope_faculties == ["Law", "Arts"]
        assert item.start_date == START
        assert item.end_date == END
        assert item.status == "active"

    def test_invalid_draft_writes_nothing(self, admin, db):
        async def scenario():
            with pytest.raises(ValidationError):
                await admin.create_item(POLL, make_draft(options=["Only"]))
            return await db.items.list_items(POLL)

        assert run(scenario()) == []

    def test_update_replaces_options_when_given(self, admin, db):
        async def scenario():
            poll_id = await admin.create_item(POLL, make_draft(options=["Yes", "No"]))
            await admin.update_item(POLL, poll_id, make_draft(title="Renamed", options=["Red", "Green", "Blue"]))
            item = await db.items.get_item(POLL, poll_id)
            options = await db.selections.get_selections_for_item(POLL, poll_id)
            return item, options

        item, options = run(scenario())
        assert item.title == "Renamed"
        assert [o.label for o in options] == ["Red", "Green", "Blue"]

    def test_update_keeps_options_when_omitted(self, admin, db):
        async def scenario():
            poll_id = await admin.create_item(POLL, make_draft(options=["Yes", "No"]))
            await admin.update_item(POLL, poll_id, make_draft(title="Renamed"))
            return await db.selections.get_selections_for_item(POLL, poll_id)

        assert [o.label for o in run(scenario())] == ["Yes", "No"]

    def test_update_missing_item_raises(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.update_item(ELECTION, "missing", make_draft()))

    def test_set_status(self, admin, db):
        async def scenario():
            election_id = await admin.create_item(ELECTION, make_draft(status="draft"))
            await admin.set_status(ELECTION, election_id, "closed")
            return await db.items.get_item(ELECTION, election_id)

        assert run(scenario()).status == "closed"

    def test_set_status_rejects_unknown_value(self, admin):
        with pytest.raises(ValidationError):
            run(admin.set_status(ELECTION, "any", "paused"))

    def test_set_status_missing_item_raises(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.set_status(ELECTION, "missing", "closed"))

    def test_delete_cascades_to_selections(self, admin, db):
        async def scenario():
            poll_id = await admin.create_item(POLL, make_draft(options=["Yes", "No", "Maybe"]))
            removed = await admin.delete_item(POLL, poll_id)
            item = await db.items.get_item(POLL, poll_id)
            options = await db.selections.get_selections_for_item(POLL, poll_id)
            return removed, item, options

        removed, item, options = run(scenario())
        assert removed == 3
        assert item is None
        assert options == []

    def test_delete_missing_item_raises(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.delete_item(POLL, "missing"))


class TestCandidates:

    def test_add_candidate(self, admin, db):
        async def scenario():
            election_id = await admin.create_item(ELECTION, make_draft())
            candidate_id = await admin.add_candidate(election_id, "  Dana  ", faculty="Law", bio="Runs the debate club")
            return await db.selections.get_selection(ELECTION, candidate_id)

        candidate = run(scenario())
        assert candidate.label == "Dana"
        assert candidate.faculty == "Law"
        assert candidate.bio == "Runs the debate club"

    def test_add_candidate_requires_name(self, admin):
        with pytest.raises(ValidationError) as exc_info:
            run(admin.add_candidate("any", " "))
        assert exc_info.value.field == "name"

    def test_add_candidate_to_missing_election(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.add_candidate("missing", "Dana"))

    def test_delete_selection(self, admin, db):
        async def scenario():
            election_id = await admin.create_item(ELECTION, make_draft())
            candidate_id = await admin.add_candidate(election_id, "Dana")
            await admin.delete_selection(ELECTION, candidate_id)
            with pytest.raises(NotFoundError):
                await admin.delete_selection(ELECTION, candidate_id)
            return await db.selections.get_selections_for_item(ELECTION, election_id)

        assert run(scenario()) == []


class TestVoters:

    def test_register_voter(self, admin, db):
        async def scenario():
            voter_id = await admin.register_voter("uid-1", "S100", " Ana ", faculty="Medicine")
            return voter_id, await db.voters.get_voter(voter_id)

        voter_id, voter = run(scenario())
        assert voter_id == "uid-1"
        assert voter.name == "Ana"
        assert voter.faculty == "Medicine"
        assert voter.is_active

    def test_register_duplicate_voter(self, admin):
        async def scenario():
            await admin.register_voter("uid-1", "S100", "Ana", faculty="Medicine")
            await admin.register_voter("uid-1", "S101", "Other", faculty="Law")

        with pytest.raises(ValidationError) as exc_info:
            run(scenario())
        assert exc_info.value.field == "voter_id"

    @pytest.mark.parametrize("args,field", [
        (("", "S1", "Ana"), "voter_id"),
        (("uid", "", "Ana"), "university_id"),
        (("uid", "S1", " "), "name"),
    ])
    def test_register_requires_fields(self, admin, args, field):
        with pytest.raises(ValidationError) as exc_info:
            run(admin.register_voter(*args, faculty="Law"))
        assert exc_info.value.field == field

    def test_register_rejects_unknown_role(self, admin):
        with pytest.raises(ValidationError) as exc_info:
            run(admin.register_voter("uid", "S1", "Ana", faculty="Law", role="superuser"))
        assert exc_info.value.field == "role"

    def test_set_voter_active(self, admin, db):
        async def scenario():
            await admin.register_voter("uid-1", "S100", "Ana", faculty="Medicine")
            await admin.set_voter_active("uid-1", False)
            return await db.voters.get_voter("uid-1")

        assert run(scenario()).is_active is False

    def test_set_active_missing_voter(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.set_voter_active("nobody", False))

    def test_update_voter(self, admin, db):
        async def scenario():
            await admin.register_voter("uid-1", "S100", "Ana", faculty="Medicine")
            await admin.update_voter("uid-1", {"faculty": "Law", "major": "Constitutional law"})
            return await db.voters.get_voter("uid-1")

        voter = run(scenario())
        assert voter.faculty == "Law"
        assert voter.major == "Constitutional law"

    def test_update_voter_rejects_protected_fields(self, admin):
        with pytest.raises(ValidationError) as exc_info:
            run(admin.update_voter("uid-1", {"role": "admin"}))
        assert exc_info.value.field == "role"

    def test_update_missing_voter(self, admin):
        with pytest.raises(NotFoundError):
            run(admin.update_voter("nobody", {"major": "Art"}))
