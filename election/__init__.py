"""Self-tallying election state machine, error taxonomy and voter client."""

from .errors import (
    ErrorKind,
    ElectionError,
    InvalidConfigurationError,
    UnauthorizedError,
    WrongRoundError,
    InvalidProofError,
    InvalidBallotError,
    DuplicateKeyError,
    TallyMismatchError,
    NotYetFinalizedError,
    UnknownCandidateError,
    OperationResult,
    attempt,
)
from .state_machine import (
    Election,
    ElectionSnapshot,
    Round,
    RoundTransition,
    VoterRecord,
    compute_slot_width,
)
from .voter import VoterClient

__all__ = [
    # State machine
    'Election',
    'ElectionSnapshot',
    'Round',
    'RoundTransition',
    'VoterRecord',
    'compute_slot_width',
    'VoterClient',

    # Errors
    'ErrorKind',
    'ElectionError',
    'InvalidConfigurationError',
    'UnauthorizedError',
    'WrongRoundError',
    'InvalidProofError',
    'InvalidBallotError',
    'DuplicateKeyError',
    'TallyMismatchError',
    'NotYetFinalizedError',
    'UnknownCandidateError',
    'OperationResult',
    'attempt',
]
