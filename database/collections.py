"""Collection layout per ballot kind

Elections and polls share one schema but live in separate collections with
slightly different field names (inherited from the mobile and admin
clients). CollectionLayout is the single place that knows those names.
"""

from dataclasses import dataclass
from typing import Union

from database.models import CollectionKind

USERS = "Users"


@dataclass(frozen=True)
class CollectionLayout:
    kind: CollectionKind
    items: str
    selections: str
    records: str
    item_fk: str  # Foreign key on selections and records
    selection_fk: str  # Selection reference on records
    scope_type_field: str
    scope_list_field: str
    label_field: str
    noun: str  # Human-readable name for messages


ELECTION_LAYOUT = CollectionLayout(
    kind=CollectionKind.ELECTION,
    items="Elections",
    selections="Candidates",
    records="Votes",
    item_fk="election_id",
    selection_fk="candidate_id",
    scope_type_field="faculty_scope_type",
    scope_list_field="faculty_scope",
    label_field="name",
    noun="election",
)

POLL_LAYOUT = CollectionLayout(
    kind=CollectionKind.POLL,
    items="Polls",
    selections="PollOptions",
    records="PollVotes",
    item_fk="poll_id",
    selection_fk="option_id",
    scope_type_field="target_type",
    scope_list_field="target_faculties",
    label_field="text",
    noun="poll",
)

_LAYOUTS = {
    CollectionKind.ELECTION: ELECTION_LAYOUT,
    CollectionKind.POLL: POLL_LAYOUT,
}


def layout_for(kind: Union[CollectionKind, str]) -> CollectionLayout:
    """Look up the layout for a kind; accepts the enum or its string value"""
    return _LAYOUTS[CollectionKind(kind)]
