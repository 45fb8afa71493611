"""
Tally Resolution
================
Checks a claimed per-candidate count vector against the homomorphic aggregate
and selects the winner. Also offers bounded discrete-log recovery, which lets
any observer derive the claim from the public aggregate by searching the
count vectors that a given number of single-slot ballots can produce.
"""

import logging
from itertools import combinations_with_replacement
from math import comb
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from arith import GroupParameters, power, mul_mod, add_mod
from .aggregation import slot_value

logger = logging.getLogger(__name__)

# Upper bound on the number of count vectors recover_counts will try
MAX_RECOVERY_VECTORS = 1 << 18


class TallyError(Exception):
    """Base exception for tally operations"""
    pass


class TallyVerificationError(TallyError):
    """Claimed counts do not reproduce the aggregate"""
    pass


@dataclass(frozen=True)
class TallyResult:
    """Verified per-candidate counts"""
    counts: Dict[str, int]
    winner: Optional[str]
    exponent: int
    aggregate: int
    total_votes: int = 0
    ranking: List[str] = field(default_factory=list)


def expected_exponent(counts: Sequence[int], slot_width: int, prime: int) -> int:
    """sum_i counts[i] * 2^(i*m) mod p"""
    exponent = 0
    for index, count in enumerate(counts):
        term = mul_mod(count, slot_value(index, slot_width), prime)
        exponent = add_mod(exponent, term, prime)
    return exponent


def select_winner(candidates: Sequence[str], counts: Sequence[int]) -> Optional[str]:
    """First candidate with a strictly greatest non-zero count; ties go to the earliest"""
    winner = None
    best = 0
    for name, count in zip(candidates, counts):
        if count > best:
            best = count
            winner = name
    return winner


def resolve(aggregate: int, claimed_counts: Sequence[int], candidates: Sequence[str],
            slot_width: int, total_votes: int, params: GroupParameters,
            check_total: bool = False) -> TallyResult:
    """Verify claimed_counts against aggregate and build the result.

    The claim is accepted iff g^expected_exponent equals the aggregate. With
    check_total the counts must also add up to total_votes, which only holds
    when every ballot is known to encode a single slot.
    """
    if len(claimed_counts) != len(candidates):
        raise TallyVerificationError(
            f"Expected {len(candidates)} counts, got {len(claimed_counts)}")
    for count in claimed_counts:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise TallyVerificationError(f"Invalid count {count!r}")
    if check_total and sum(claimed_counts) != total_votes:
        raise TallyVerificationError(
            f"Counts sum to {sum(claimed_counts)} but {total_votes} votes were cast")

    exponent = expected_exponent(claimed_counts, slot_width, params.prime)
    if power(params.generator, exponent, params.prime) != aggregate:
        raise TallyVerificationError("Claimed counts do not reproduce the aggregate")

    counts = dict(zip(candidates, claimed_counts))
    ranking = sorted(candidates, key=lambda name: -counts[name])
    return TallyResult(
        counts=counts,
        winner=select_winner(candidates, claimed_counts),
        exponent=exponent,
        aggregate=aggregate,
        total_votes=total_votes,
        ranking=ranking,
    )


def recover_counts(aggregate: int, num_candidates: int, slot_width: int,
                   total_votes: int, params: GroupParameters) -> List[int]:
    """Bounded discrete log of the aggregate over all splits of total_votes.

    Tries every count vector of total_votes single-slot ballots, C(V+n-1, n-1)
    of them. Raises TallyVerificationError when none or more than one
    reproduces the aggregate.
    """
    space = comb(total_votes + num_candidates - 1, num_candidates - 1)
    if space > MAX_RECOVERY_VECTORS:
        raise TallyVerificationError(
            f"{space} candidate count vectors exceed the recovery bound")

    p = params.prime
    tried: Dict[int, bool] = {}
    matches: List[List[int]] = []
    for ballots in combinations_with_replacement(range(num_candidates), total_votes):
        counts = [ballots.count(index) for index in range(num_candidates)]
        exponent = sum(count * slot_value(index, slot_width) for index, count in enumerate(counts))
        if exponent not in tried:
            tried[exponent] = power(params.generator, exponent, p) == aggregate
        if tried[exponent]:
            matches.append(counts)

    if not matches:
        raise TallyVerificationError(
            f"Aggregate is not reachable by {total_votes} single-slot ballots")
    if len(matches) > 1:
        raise TallyVerificationError(
            f"Aggregate is ambiguous: {matches} all reproduce it "
            f"(a slot overflowed its {slot_width}-bit width)")

    logger.info(f"Recovered counts {matches[0]} after trying {space} vectors")
    return matches[0]
