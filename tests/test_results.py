"""
Tests for ResultAggregator

Ranking, percentages, tie-breaking and the handling of records whose
selection no longer exists.
"""

import pytest

from conftest import fixed_clock, run
from database.models import CollectionKind
from exceptions import NotFoundError
from voting.guard import VoteGuard
from voting.results import ResultAggregator

ELECTION = CollectionKind.ELECTION
POLL = CollectionKind.POLL


class TestRanking:

    def test_five_three_two_split(self, db, seeder):
        """10 votes distributed 5/3/2 rank in that order with 50/30/20 percent"""
        async def scenario():
            item_id, (a, b, c) = await seeder.item(ELECTION, labels=("A", "B", "C"))
            await seeder.votes(ELECTION, item_id, c, 2)
            await seeder.votes(ELECTION, item_id, a, 5)
            await seeder.votes(ELECTION, item_id, b, 3)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.total_votes == 10
        assert [r.label for r in tally.results] == ["A", "B", "C"]
        assert [r.votes for r in tally.results] == [5, 3, 2]
        assert [r.percentage for r in tally.results] == [50.0, 30.0, 20.0]
        assert [r.rank for r in tally.results] == [1, 2, 3]
        assert tally.leader.label == "A"

    def test_tie_broken_by_creation_order(self, db, seeder):
        async def scenario():
            item_id, (first, second, third) = await seeder.item(ELECTION, labels=("First", "Second", "Third"))
            await seeder.votes(ELECTION, item_id, third, 2)
            await seeder.votes(ELECTION, item_id, second, 2)
            await seeder.votes(ELECTION, item_id, first, 2)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert [r.label for r in tally.results] == ["First", "Second", "Third"]
        assert [r.rank for r in tally.results] == [1, 1, 1]

    def test_poll_options_tie_broken_by_order(self, db, seeder):
        async def scenario():
            poll_id, (yes, no) = await seeder.item(POLL, labels=("Yes", "No"))
            await seeder.votes(POLL, poll_id, no, 1)
            await seeder.votes(POLL, poll_id, yes, 1)
            return await ResultAggregator(db).aggregate(POLL, poll_id)

        tally = run(scenario())
        assert [r.label for r in tally.results] == ["Yes", "No"]

    def test_zero_vote_selections_included(self, db, seeder):
        async def scenario():
            item_id, (a, _, _) = await seeder.item(ELECTION, labels=("A", "B", "C"))
            await seeder.votes(ELECTION, item_id, a, 4)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert [r.votes for r in tally.results] == [4, 0, 0]
        assert [r.percentage for r in tally.results] == [100.0, 0.0, 0.0]
        assert [r.rank for r in tally.results] == [1, 2, 2]

    def test_repeated_aggregation_is_identical(self, db, seeder):
        async def scenario():
            item_id, selections = await seeder.item(ELECTION, labels=("A", "B", "C", "D"))
            for selection_id in selections:
                await seeder.votes(ELECTION, item_id, selection_id, 1)
            aggregator = ResultAggregator(db)
            return [await aggregator.aggregate(ELECTION, item_id) for _ in range(3)]

        first, second, third = run(scenario())
        assert first == second == third


class TestPercentages:

    @pytest.mark.parametrize("split", [(1, 1, 1), (2, 2, 3), (1, 0, 0), (7, 5, 3, 1), (33, 33, 34)])
    def test_percentages_sum_to_100(self, db, seeder, split):
        async def scenario():
            labels = [f"S{n}" for n in range(len(split))]
            item_id, selections = await seeder.item(ELECTION, labels=labels)
            for selection_id, count in zip(selections, split):
                await seeder.votes(ELECTION, item_id, selection_id, count)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.total_votes == sum(split)
        assert abs(sum(r.percentage for r in tally.results) - 100.0) <= 0.1

    def test_percentages_rounded_to_two_decimals(self, db, seeder):
        async def scenario():
            item_id, (a, b, c) = await seeder.item(ELECTION, labels=("A", "B", "C"))
            for selection_id in (a, b, c):
                await seeder.votes(ELECTION, item_id, selection_id, 1)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert [r.percentage for r in tally.results] == [33.33, 33.33, 33.33]

    def test_no_votes_all_zero(self, db, seeder):
        async def scenario():
            item_id, _ = await seeder.item(ELECTION, labels=("A", "B"))
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.total_votes == 0
        assert [r.percentage for r in tally.results] == [0.0, 0.0]
        assert tally.leader is None


class TestEdgeCases:

    def test_missing_item_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            run(ResultAggregator(db).aggregate(ELECTION, "missing"))

    def test_no_selections_gives_empty_results(self, db, seeder):
        async def scenario():
            item_id, _ = await seeder.item(ELECTION, labels=())
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.results == []
        assert tally.total_votes == 0

    def test_records_for_deleted_selection_count_in_total(self, db, seeder):
        async def scenario():
            item_id, (a, b) = await seeder.item(ELECTION, labels=("A", "B"))
            await seeder.votes(ELECTION, item_id, a, 3)
            await seeder.votes(ELECTION, item_id, b, 1)
            await db.selections.delete_selection(ELECTION, b)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.total_votes == 4
        assert [(r.label, r.votes, r.percentage) for r in tally.results] == [("A", 3, 75.0)]

    def test_repeat_vote_leaves_tally_unchanged(self, db, seeder):
        """A then B by the same voter counts once, for A"""
        async def scenario():
            await seeder.voter("u1")
            item_id, (a, b) = await seeder.item(ELECTION, labels=("A", "B"))
            guard = VoteGuard(db, clock=fixed_clock)
            await guard.cast_vote("u1", ELECTION, item_id, a)
            await guard.cast_vote("u1", ELECTION, item_id, b)
            return await ResultAggregator(db).aggregate(ELECTION, item_id)

        tally = run(scenario())
        assert tally.total_votes == 1
        votes = {r.label: r.votes for r in tally.results}
        assert votes == {"A": 1, "B": 0}

    def test_to_dict_shape(self, db, seeder):
        async def scenario():
            item_id, (a, _) = await seeder.item(ELECTION, labels=("A", "B"))
            await seeder.votes(ELECTION, item_id, a, 1)
            return item_id, await ResultAggregator(db).aggregate(ELECTION, item_id)

        item_id, tally = run(scenario())
        data = tally.to_dict()
        assert data["kind"] == "election"
        assert data["item_id"] == item_id
        assert data["results"][0] == {
            "selection_id": tally.results[0].selection_id,
            "label": "A",
            "votes": 1,
            "percentage": 100.0,
            "rank": 1,
        }
