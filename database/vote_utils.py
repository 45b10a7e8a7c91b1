"""Shared vote tally and ranking computation logic."""

from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple


def compute_vote_tally(selection_ids: Iterable[str]) -> Dict[str, int]:
    """Count ballot records per selection id."""
    return dict(Counter(selection_ids))


def compute_percentage(votes: int, total: int) -> float:
    """Share of total rounded to 2 decimals; 0.0 when nothing was cast."""
    if total <= 0:
        return 0.0
    return round(votes / total * 100, 2)


def assign_ranks(vote_counts: Sequence[int]) -> List[int]:
    """Competition ranks (1, 2, 2, 4) for counts already sorted descending."""
    ranks: List[int] = []
    for position, votes in enumerate(vote_counts):
        if position > 0 and votes == vote_counts[position - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(position + 1)
    return ranks


def tally_sort_key(votes: int, display_key: Tuple) -> Tuple:
    """Votes descending, then the selection's display order."""
    return (-votes, display_key)
