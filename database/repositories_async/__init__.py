"""Async repositories over the document store"""

from database.repositories_async.base import BaseRepository
from database.repositories_async.items import BallotItemRepository
from database.repositories_async.records import BallotRecordRepository
from database.repositories_async.selections import SelectionRepository
from database.repositories_async.voters import VoterRepository

__all__ = [
    "BaseRepository",
    "BallotItemRepository",
    "BallotRecordRepository",
    "SelectionRepository",
    "VoterRepository",
]
