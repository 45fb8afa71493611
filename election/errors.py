"""
Election error taxonomy.

Every failure carries an ErrorKind and a human-readable reason. Operations
raise the matching ElectionError subclass; `attempt` turns that into an
inspectable OperationResult for callers that prefer result values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class ErrorKind(Enum):
    """Failure categories surfaced by election operations"""
    INVALID_CONFIGURATION = "invalid_configuration"
    UNAUTHORIZED = "unauthorized"
    WRONG_ROUND = "wrong_round"
    INVALID_PROOF = "invalid_proof"
    INVALID_BALLOT = "invalid_ballot"
    DUPLICATE_KEY = "duplicate_key"
    TALLY_MISMATCH = "tally_mismatch"
    NOT_YET_FINALIZED = "not_yet_finalized"
    UNKNOWN_CANDIDATE = "unknown_candidate"


class ElectionError(Exception):
    """Base exception for election operations"""
    kind: ErrorKind = None

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.reason}"


class InvalidConfigurationError(ElectionError):
    kind = ErrorKind.INVALID_CONFIGURATION


class UnauthorizedError(ElectionError):
    kind = ErrorKind.UNAUTHORIZED


class WrongRoundError(ElectionError):
    kind = ErrorKind.WRONG_ROUND


class InvalidProofError(ElectionError):
    kind = ErrorKind.INVALID_PROOF


class InvalidBallotError(ElectionError):
    kind = ErrorKind.INVALID_BALLOT


class DuplicateKeyError(ElectionError):
    kind = ErrorKind.DUPLICATE_KEY


class TallyMismatchError(ElectionError):
    kind = ErrorKind.TALLY_MISMATCH


class NotYetFinalizedError(ElectionError):
    kind = ErrorKind.NOT_YET_FINALIZED


class UnknownCandidateError(ElectionError):
    kind = ErrorKind.UNKNOWN_CANDIDATE


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an election operation"""
    ok: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    reason: str = ""

    @property
    def failed(self) -> bool:
        return not self.ok


def attempt(operation: Callable[..., Any], *args, **kwargs) -> OperationResult:
    """Run an election operation and report its outcome instead of raising"""
    try:
        value = operation(*args, **kwargs)
    except ElectionError as e:
        return OperationResult(ok=False, error=e.kind, reason=e.reason)
    return OperationResult(ok=True, value=value)
