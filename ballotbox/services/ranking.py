"""
Ranked ballot validation.

A ballot is a sequence of ``(poll_option_id, rank)`` pairs. It is accepted
when its ranks are exactly ``1..k``, every option is ranked at most once,
every option belongs to the poll, and ``k`` respects the poll's
``max_rankings`` cap. Rules are checked in a fixed order and the first one
violated is reported, so the same input always yields the same reason.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Iterable, List, Optional

from ..errors import BallotRejected


class RankingReason(str, Enum):
    EMPTY = "EMPTY"
    NON_CONTIGUOUS_RANKS = "NON_CONTIGUOUS_RANKS"
    DUPLICATE_RANK = "DUPLICATE_RANK"
    DUPLICATE_OPTION = "DUPLICATE_OPTION"
    UNKNOWN_OPTION = "UNKNOWN_OPTION"
    TOO_MANY_RANKINGS = "TOO_MANY_RANKINGS"


_MESSAGES = {
    RankingReason.EMPTY: "Please rank at least one option",
    RankingReason.NON_CONTIGUOUS_RANKS: "Ranks must run from 1 without gaps",
    RankingReason.DUPLICATE_RANK: "Each rank can only be used once",
    RankingReason.DUPLICATE_OPTION: "Each option can only be ranked once",
    RankingReason.UNKNOWN_OPTION: "Option not found for this poll",
    RankingReason.TOO_MANY_RANKINGS: "Too many options ranked for this poll",
}


class RankingRejected(BallotRejected):
    def __init__(self, reason: RankingReason):
        super().__init__(reason, field="rankings", message=_MESSAGES[reason])


@dataclass(frozen=True)
class RankingEntry:
    poll_option_id: Any
    rank: int


def _has_duplicates(values: List) -> bool:
    return len(set(values)) != len(values)


def validate_rankings(
    option_ids: Collection,
    rankings: Iterable,
    max_rankings: Optional[int] = None,
) -> List[RankingEntry]:
    """
    Validate ``rankings`` against a poll's option ids.

    ``rankings`` may hold ``RankingEntry`` objects, ``(option_id, rank)``
    tuples or mappings with ``poll_option_id`` and ``rank`` keys. Returns the
    entries ordered by rank; raises ``RankingRejected`` otherwise.
    """
    entries = [_as_entry(item) for item in rankings]
    if not entries:
        raise RankingRejected(RankingReason.EMPTY)

    ranks = [e.rank for e in entries]
    distinct = sorted(set(ranks))
    if any(rank != i + 1 for i, rank in enumerate(distinct)):
        raise RankingRejected(RankingReason.NON_CONTIGUOUS_RANKS)
    if _has_duplicates(ranks):
        raise RankingRejected(RankingReason.DUPLICATE_RANK)

    chosen = [e.poll_option_id for e in entries]
    if _has_duplicates(chosen):
        raise RankingRejected(RankingReason.DUPLICATE_OPTION)
    if any(option_id not in option_ids for option_id in chosen):
        raise RankingRejected(RankingReason.UNKNOWN_OPTION)

    if max_rankings is not None and len(entries) > max_rankings:
        raise RankingRejected(RankingReason.TOO_MANY_RANKINGS)

    return sorted(entries, key=lambda e: e.rank)


def _as_entry(item) -> RankingEntry:
    if isinstance(item, RankingEntry):
        return item
    if isinstance(item, dict):
        return RankingEntry(item["poll_option_id"], item["rank"])
    option_id, rank = item
    return RankingEntry(option_id, rank)
