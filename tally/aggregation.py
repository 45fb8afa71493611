"""
Homomorphic vote aggregation.

A vote for candidate j is g^(2^(j*m)) (optionally blinded by y^x, which
cancels across the roster), so multiplying ballots adds their exponents and
the aggregate becomes g^(sum_j count_j * 2^(j*m)).
"""

from functools import reduce
from typing import Iterable

from arith import GroupParameters, power, mul_mod

IDENTITY = 1


def slot_value(index: int, slot_width: int) -> int:
    """Exponent reserved for candidate `index`: 2^(index*m)"""
    if index < 0 or slot_width < 1:
        raise ValueError("Slot index must be >= 0 and slot width >= 1")
    return 1 << (index * slot_width)


def encode_vote(candidate_index: int, slot_width: int, params: GroupParameters) -> int:
    """Unblinded encoding g^(2^(j*m))"""
    return power(params.generator, slot_value(candidate_index, slot_width), params.prime)


def fold(current: int, encrypted_vote: int, prime: int) -> int:
    return mul_mod(current, encrypted_vote, prime)


def fold_all(encrypted_votes: Iterable[int], prime: int) -> int:
    return reduce(lambda acc, vote: fold(acc, vote, prime), encrypted_votes, IDENTITY)
