"""Faculty-scope eligibility filter

Pure and total: every combination of inputs yields a boolean. Missing data
on either side resolves to the configured default (CAMPUSVOTE_DEFAULT_ELIGIBILITY,
"allow" unless changed), which keeps the mobile client's historic behaviour
of admitting voters with incomplete profiles.
"""

from typing import Iterable, Optional

from config import resolve_default_eligibility
from database.models import BallotItem, ScopeType

# Faculty values the clients write for "no faculty chosen"
UNSPECIFIED_FACULTIES = frozenset({"all", "unknown"})


def _is_unspecified(faculty: Optional[str]) -> bool:
    if not isinstance(faculty, str):
        return True
    value = faculty.strip()
    return not value or value.lower() in UNSPECIFIED_FACULTIES


def is_eligible(
    voter_faculty: Optional[str],
    scope_type: Optional[str],
    scope_faculties: Optional[Iterable[str]],
    default: Optional[bool] = None,
) -> bool:
    """Whether a voter of voter_faculty may see and vote on an item with this scope"""
    default = resolve_default_eligibility(default)

    if scope_type == ScopeType.ALL_FACULTIES.value:
        return True

    if _is_unspecified(voter_faculty):
        return default

    faculties = [f for f in (scope_faculties or ()) if isinstance(f, str)]
    if not scope_type and not faculties:
        return default

    voter_faculty = voter_faculty.strip()
    return any(f.strip() == voter_faculty for f in faculties)


def item_is_eligible(
    voter_faculty: Optional[str], item: BallotItem, default: Optional[bool] = None
) -> bool:
    return is_eligible(voter_faculty, item.scope_type, item.scope_faculties, default)
