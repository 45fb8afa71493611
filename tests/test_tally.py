import itertools
import random

import pytest

from arith import power
from tally import (
    IDENTITY,
    TallyVerificationError,
    encode_vote,
    expected_exponent,
    fold,
    fold_all,
    recover_counts,
    resolve,
    select_winner,
    slot_value,
)

CANDIDATES = ["c0", "c1", "c2"]
SLOT_WIDTH = 2


class TestAggregation:

    def test_slot_values(self):
        assert [slot_value(i, SLOT_WIDTH) for i in range(3)] == [1, 4, 16]
        assert slot_value(2, 3) == 64
        with pytest.raises(ValueError):
            slot_value(-1, 2)

    def test_fold_multiplies(self, params):
        a = encode_vote(0, SLOT_WIDTH, params)
        b = encode_vote(1, SLOT_WIDTH, params)
        assert fold(IDENTITY, a, params.prime) == a
        assert fold(a, b, params.prime) == power(params.generator, 5, params.prime)

    def test_aggregation_is_order_independent(self, params):
        votes = [encode_vote(i, SLOT_WIDTH, params) for i in (0, 1, 1, 2, 0)]
        expected = fold_all(votes, params.prime)
        for permutation in itertools.permutations(votes):
            assert fold_all(permutation, params.prime) == expected
        assert expected == power(params.generator, 1 + 4 + 4 + 16 + 1, params.prime)

    def test_empty_aggregate_is_identity(self, params):
        assert fold_all([], params.prime) == IDENTITY


class TestResolution:

    def aggregate_for(self, indices, params):
        return fold_all([encode_vote(i, SLOT_WIDTH, params) for i in indices], params.prime)

    def test_expected_exponent(self, params):
        assert expected_exponent([1, 2, 0], SLOT_WIDTH, params.prime) == 9
        assert expected_exponent([0, 0, 3], SLOT_WIDTH, params.prime) == 48

    def test_resolve_accepts_true_counts(self, params):
        aggregate = self.aggregate_for([0, 1, 1], params)
        result = resolve(aggregate, [1, 2, 0], CANDIDATES, SLOT_WIDTH, 3, params)
        assert result.counts == {"c0": 1, "c1": 2, "c2": 0}
        assert result.winner == "c1"
        assert result.exponent == 9
        assert result.ranking == ["c1", "c0", "c2"]

    def test_every_single_unit_perturbation_is_rejected(self, params):
        aggregate = self.aggregate_for([0, 1, 1], params)
        true_counts = [1, 2, 0]
        for index, delta in itertools.product(range(3), (-1, 1)):
            claimed = list(true_counts)
            claimed[index] += delta
            with pytest.raises(TallyVerificationError):
                resolve(aggregate, claimed, CANDIDATES, SLOT_WIDTH, 3, params)

    def test_same_total_wrong_distribution_is_rejected(self, params):
        aggregate = self.aggregate_for([0, 1, 1], params)
        with pytest.raises(TallyVerificationError):
            resolve(aggregate, [2, 1, 0], CANDIDATES, SLOT_WIDTH, 3, params)

    def test_counts_need_not_sum_to_ballots_cast(self, params):
        # A ballot carrying g^2 instead of a single slot value
        aggregate = fold(self.aggregate_for([1, 1], params), power(params.generator, 2, params.prime),
                         params.prime)
        result = resolve(aggregate, [2, 2, 0], CANDIDATES, SLOT_WIDTH, 3, params)
        assert result.counts == {"c0": 2, "c1": 2, "c2": 0}
        assert result.winner == "c0"

        with pytest.raises(TallyVerificationError, match="sum to 4"):
            resolve(aggregate, [2, 2, 0], CANDIDATES, SLOT_WIDTH, 3, params, check_total=True)

    @pytest.mark.parametrize("claimed", [[1, 2], [1, 2, 0, 0], [1, 2, -0.5], [True, 2, 0]])
    def test_malformed_claims(self, params, claimed):
        aggregate = self.aggregate_for([0, 1, 1], params)
        with pytest.raises(TallyVerificationError):
            resolve(aggregate, claimed, CANDIDATES, SLOT_WIDTH, 3, params)

    def test_select_winner_ties_go_to_earliest(self):
        assert select_winner(CANDIDATES, [2, 2, 1]) == "c0"
        assert select_winner(CANDIDATES, [0, 3, 3]) == "c1"
        assert select_winner(CANDIDATES, [0, 0, 0]) is None


class TestRecovery:

    def test_recovers_counts(self, params):
        rng = random.Random(7)
        for _ in range(5):
            indices = [rng.randrange(3) for _ in range(3)]
            aggregate = fold_all([encode_vote(i, SLOT_WIDTH, params) for i in indices], params.prime)
            counts = recover_counts(aggregate, 3, SLOT_WIDTH, 3, params)
            assert counts == [indices.count(i) for i in range(3)]

    def test_last_slot_may_exceed_width(self, params):
        aggregate = fold_all([encode_vote(2, SLOT_WIDTH, params)] * 5, params.prime)
        assert recover_counts(aggregate, 3, SLOT_WIDTH, 5, params) == [0, 0, 5]

    def test_full_slot_is_recovered_when_unambiguous(self, params):
        aggregate = fold_all([encode_vote(0, SLOT_WIDTH, params)] * 4, params.prime)
        assert recover_counts(aggregate, 3, SLOT_WIDTH, 4, params) == [4, 0, 0]

    def test_overflowed_slots_are_ambiguous(self, params):
        # [0, 5, 0] and [4, 0, 1] share both the exponent 20 and the total 5
        aggregate = fold_all([encode_vote(1, SLOT_WIDTH, params)] * 5, params.prime)
        with pytest.raises(TallyVerificationError, match="ambiguous"):
            recover_counts(aggregate, 3, SLOT_WIDTH, 5, params)

    def test_many_candidates(self, params):
        aggregate = fold_all([encode_vote(i, 4, params) for i in (7, 7, 0)], params.prime)
        assert recover_counts(aggregate, 8, 4, 3, params) == [1, 0, 0, 0, 0, 0, 0, 2]

        aggregate = fold_all([encode_vote(i, 5, params) for i in (3, 16, 16, 9)], params.prime)
        counts = recover_counts(aggregate, 17, 5, 4, params)
        assert counts[16] == 2 and counts[3] == 1 and counts[9] == 1 and sum(counts) == 4

    def test_search_space_is_bounded(self, params):
        with pytest.raises(TallyVerificationError, match="recovery bound"):
            recover_counts(IDENTITY, 32, 6, 40, params)

    def test_no_votes(self, params):
        assert recover_counts(IDENTITY, 3, SLOT_WIDTH, 0, params) == [0, 0, 0]

    def test_unreachable_aggregate(self, params):
        aggregate = power(params.generator, 10_000, params.prime)
        with pytest.raises(TallyVerificationError):
            recover_counts(aggregate, 3, SLOT_WIDTH, 3, params)
