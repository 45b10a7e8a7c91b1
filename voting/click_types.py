"""Click Custom Types for the campusvote CLI

Validates arguments at CLI parsing time with clear error messages.
"""

import click

from database.models import CollectionKind


class CollectionKindType(click.ParamType):
    """Accepts election/poll (plural forms too) and returns a CollectionKind

    Valid examples:
    - election
    - polls
    """

    name = "kind"

    def convert(self, value, param, ctx):
        if isinstance(value, CollectionKind):
            return value
        if not value:
            self.fail("kind cannot be empty", param, ctx)

        normalized = value.strip().lower()
        if normalized.endswith("s"):
            normalized = normalized[:-1]
        try:
            return CollectionKind(normalized)
        except ValueError:
            self.fail(f"{value!r} is not a ballot kind. Use 'election' or 'poll'", param, ctx)


KIND = CollectionKindType()
