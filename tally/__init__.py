"""Homomorphic vote aggregation and tally resolution."""

from .aggregation import fold, fold_all, slot_value, encode_vote, IDENTITY
from .resolution import (
    TallyResult,
    TallyError,
    TallyVerificationError,
    expected_exponent,
    select_winner,
    resolve,
    recover_counts,
)

__all__ = [
    'fold',
    'fold_all',
    'slot_value',
    'encode_vote',
    'IDENTITY',
    'TallyResult',
    'TallyError',
    'TallyVerificationError',
    'expected_exponent',
    'select_winner',
    'resolve',
    'recover_counts',
]
