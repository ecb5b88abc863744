import itertools

import pytest

from ballotbox.services.ranking import RankingEntry, RankingReason, RankingRejected, validate_rankings

X, Y, Z = "opt-x", "opt-y", "opt-z"
OPTIONS = {X, Y, Z}


def reason_of(rankings, option_ids=OPTIONS, max_rankings=None):
    with pytest.raises(RankingRejected) as info:
        validate_rankings(option_ids, rankings, max_rankings)
    return info.value.reason


def test_accepts_partial_ballot_within_cap():
    accepted = validate_rankings(OPTIONS, [(Y, 1), (X, 2)], max_rankings=2)
    assert accepted == [RankingEntry(Y, 1), RankingEntry(X, 2)]


def test_returns_entries_ordered_by_rank():
    accepted = validate_rankings(OPTIONS, [(Z, 3), (X, 1), (Y, 2)])
    assert [e.poll_option_id for e in accepted] == [X, Y, Z]


def test_accepts_mappings_as_submitted_by_clients():
    accepted = validate_rankings(OPTIONS, [{"poll_option_id": X, "rank": 1}])
    assert accepted == [RankingEntry(X, 1)]


def test_duplicate_rank():
    assert reason_of([(X, 1), (Y, 1)], max_rankings=2) == RankingReason.DUPLICATE_RANK


def test_missing_first_rank():
    assert reason_of([(X, 2)]) == RankingReason.NON_CONTIGUOUS_RANKS


@pytest.mark.parametrize("rankings, reason", [
    ([], RankingReason.EMPTY),
    ([(X, 1), (Y, 3)], RankingReason.NON_CONTIGUOUS_RANKS),
    ([(X, 0)], RankingReason.NON_CONTIGUOUS_RANKS),
    ([(X, -1), (Y, 1)], RankingReason.NON_CONTIGUOUS_RANKS),
    ([(X, 1), (Y, 2), (Z, 2)], RankingReason.DUPLICATE_RANK),
    ([(X, 1), (X, 2)], RankingReason.DUPLICATE_OPTION),
    ([(X, 1), ("elsewhere", 2)], RankingReason.UNKNOWN_OPTION),
])
def test_rejection_reasons(rankings, reason):
    assert reason_of(rankings) == reason


def test_too_many_rankings():
    assert reason_of([(X, 1), (Y, 2), (Z, 3)], max_rankings=2) == RankingReason.TOO_MANY_RANKINGS


def test_first_violated_rule_wins():
    # gap + duplicate option + unknown option: the gap is reported
    assert reason_of([(X, 1), (X, 3), ("elsewhere", 4)]) == RankingReason.NON_CONTIGUOUS_RANKS
    # duplicate option + unknown option + over the cap
    assert reason_of([(X, 1), (X, 2), ("elsewhere", 3)], max_rankings=1) == RankingReason.DUPLICATE_OPTION
    # unknown option + over the cap
    assert reason_of([("elsewhere", 1), (X, 2)], max_rankings=1) == RankingReason.UNKNOWN_OPTION


def test_rejection_carries_reason_and_field():
    with pytest.raises(RankingRejected) as info:
        validate_rankings(OPTIONS, [])
    assert info.value.details == {"reason": "EMPTY", "field": "rankings"}
    assert info.value.code == "BALLOT_REJECTED"


def test_option_missing_from_live_set_cannot_be_ranked():
    removed = X
    live = OPTIONS - {removed}
    assert validate_rankings(OPTIONS, [(removed, 1)])
    assert reason_of([(removed, 1)], option_ids=live) == RankingReason.UNKNOWN_OPTION


def all_ballots(max_length=3):
    pairs = list(itertools.product([X, Y, Z, "elsewhere"], range(0, 5)))
    for length in range(max_length + 1):
        yield from itertools.product(pairs, repeat=length)


def test_every_accepted_ballot_is_ranked_one_to_k():
    accepted_count = 0
    for ballot in all_ballots():
        for cap in (None, 1, 2):
            try:
                accepted = validate_rankings(OPTIONS, ballot, cap)
            except RankingRejected:
                continue
            accepted_count += 1
            ranks = sorted(e.rank for e in accepted)
            options = [e.poll_option_id for e in accepted]
            assert ranks == list(range(1, len(ballot) + 1))
            assert len(set(options)) == len(options)
            assert set(options) <= OPTIONS
            assert cap is None or len(accepted) <= cap
    assert accepted_count > 0


def test_reason_does_not_depend_on_submission_order():
    for ballot in all_ballots(max_length=3):
        outcomes = set()
        for order in itertools.permutations(ballot):
            try:
                validate_rankings(OPTIONS, order, 2)
                outcomes.add(None)
            except RankingRejected as e:
                outcomes.add(e.reason)
        assert len(outcomes) == 1, ballot
