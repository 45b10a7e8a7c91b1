"""Result aggregation for elections and polls

Computes ranked, percentage-annotated tallies at any time. Who may see
them (voters only after closing, admins live) is decided in VotingService.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from config import get_logger
from database.db import Database
from database.models import CollectionKind
from database.repositories_async.selections import display_order
from database.vote_utils import assign_ranks, compute_percentage, compute_vote_tally, tally_sort_key
from exceptions import NotFoundError
from voting.protocols import MetricsCollector, NullMetrics

logger = get_logger(__name__).bind(component="result_aggregator")


@dataclass(frozen=True)
class SelectionTally:
    selection_id: str
    label: str
    votes: int
    percentage: float
    rank: int

    def to_dict(self) -> dict:
        return {
            "selection_id": self.selection_id,
            "label": self.label,
            "votes": self.votes,
            "percentage": self.percentage,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class TallyResult:
    """Tally for one item; results are ordered by votes descending

    total_votes counts every stored record, including records whose
    selection was deleted after voting opened.
    """

    kind: CollectionKind
    item_id: str
    total_votes: int
    results: List[SelectionTally] = field(default_factory=list)

    @property
    def leader(self) -> Optional[SelectionTally]:
        if not self.results or self.total_votes == 0:
            return None
        return self.results[0]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "item_id": self.item_id,
            "total_votes": self.total_votes,
            "results": [r.to_dict() for r in self.results],
        }


class ResultAggregator:
    """Tallies ballot records per selection"""

    def __init__(self, db: Database, metrics: Optional[MetricsCollector] = None):
        self.db = db
        self.metrics = metrics or NullMetrics()

    async def aggregate(self, kind: CollectionKind, item_id: str) -> TallyResult:
        """Ranked tally for an item

        Raises:
            NotFoundError: If the item does not exist
            DatabaseConnectionError: Store unreachable (retryable)
        """
        kind = CollectionKind(kind)
        item = await self.db.items.get_item(kind, item_id)
        if item is None:
            raise NotFoundError(f"{kind.value.capitalize()} not found", entity=kind.value, entity_id=item_id)

        records = await self.db.records.get_records_for_item(kind, item_id)
        selections = await self.db.selections.get_selections_for_item(kind, item_id)

        total = len(records)
        counts = compute_vote_tally(record.selection_id for record in records)

        ordered = sorted(
            selections,
            key=lambda s: tally_sort_key(counts.get(s.id, 0), display_order(s)),
        )
        vote_counts = [counts.get(s.id, 0) for s in ordered]
        ranks = assign_ranks(vote_counts)

        results = [
            SelectionTally(
                selection_id=selection.id,
                label=selection.label,
                votes=votes,
                percentage=compute_percentage(votes, total),
                rank=rank,
            )
            for selection, votes, rank in zip(ordered, vote_counts, ranks)
        ]

        orphaned = total - sum(vote_counts)
        if orphaned:
            logger.warning(
                "records reference missing selections",
                kind=kind.value,
                item_id=item_id,
                orphaned=orphaned,
            )

        self.metrics.tallies_computed.labels(kind=kind.value).inc()
        logger.debug("tally computed", kind=kind.value, item_id=item_id, total_votes=total)
        return TallyResult(kind=kind, item_id=item_id, total_votes=total, results=results)
