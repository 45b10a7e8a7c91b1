"""
ID Generation - Identifier generation for voting entities

Entity ID Patterns:
- Ballot record ID: {kind}_{32-char-sha256} - e.g., "election_7a8f3b2c1d9e4f5a..."
- Document ID: 20-char random hex (Firestore-style auto id)

Design Philosophy:
- Ballot record IDs are deterministic: the same (item, voter) pair always
  produces the same key, so a second vote collides on the primary key
  instead of relying on a prior read
- Everything else gets opaque random IDs
"""

import hashlib
import secrets
from typing import Union

from database.models import CollectionKind

_RECORD_HASH_LENGTH = 32


def generate_ballot_record_id(
    kind: Union[CollectionKind, str],
    item_id: str,
    voter_id: str,
) -> str:
    """Generate the primary key of a ballot record

    Algorithm: SHA-256 over a length-prefixed "item:voter" string -> hex ->
    first 32 chars. The length prefix keeps ("a:b", "c") and ("a", "b:c")
    from colliding.

    Args:
        kind: election or poll
        item_id: Ballot item ID
        voter_id: Voter identity (auth uid)

    Returns:
        Deterministic record ID

    Raises:
        ValueError: If item_id or voter_id is empty

    Examples:
        >>> generate_ballot_record_id("election", "el1", "u1") == generate_ballot_record_id("election", "el1", "u1")
        True
    """
    if not item_id or not voter_id:
        raise ValueError("Ballot record ID requires both item_id and voter_id")

    kind_value = CollectionKind(kind).value
    key = f"{len(item_id)}:{item_id}:{voter_id}"
    hash_hex = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"{kind_value}_{hash_hex[:_RECORD_HASH_LENGTH]}"


def generate_document_id() -> str:
    """Random 20-character document ID for items, selections and voters"""
    return secrets.token_hex(10)
