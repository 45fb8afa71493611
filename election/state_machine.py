"""
Self-Tallying Election State Machine
====================================

Orchestrates the four rounds of the Hao-Ryan-Zielinski two-round
public-discussion protocol:

    REGISTRATION -> VOTING -> TALLY_PENDING -> CLOSED

Voters register a public key together with a Schnorr proof of knowledge of
its secret, then each submits one (blinded) ballot which is folded into the
homomorphic aggregate. Anyone may then submit a per-candidate count vector;
it is accepted only if it reproduces the aggregate.

Every mutating operation checks all of its preconditions before writing any
state, and all access goes through a single re-entrant lock, so an
operation either commits completely or leaves the election untouched.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from arith import GroupParameters, is_group_element, mul_mod, inverse, validate_group
from config import ElectionConfig
from tally import (
    IDENTITY,
    TallyResult,
    TallyVerificationError,
    fold,
    resolve,
)
from zk import BallotProof, verify_ballot, verify_knowledge
from .errors import (
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
)

logger = logging.getLogger(__name__)

# ============================================================================
# DATA STRUCTURES
# ============================================================================


class Round(Enum):
    """Protocol rounds, in order"""
    REGISTRATION = "registration"
    VOTING = "voting"
    TALLY_PENDING = "tally_pending"
    CLOSED = "closed"


ROUND_ORDER = [Round.REGISTRATION, Round.VOTING, Round.TALLY_PENDING, Round.CLOSED]


@dataclass
class VoterRecord:
    """Per-roster-entry registration and voting state"""
    voter_id: str
    eligible: bool = True
    public_key: Optional[int] = None
    registration_index: Optional[int] = None
    registered_at: Optional[float] = None
    voted_at: Optional[float] = None

    @property
    def registered(self) -> bool:
        return self.public_key is not None


@dataclass(frozen=True)
class RoundTransition:
    from_round: Round
    to_round: Round
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ElectionSnapshot:
    """Consistent read-only view of the election"""
    round: Round
    candidates: Tuple[str, ...]
    roster_size: int
    registration_count: int
    vote_count: int
    aggregate: Optional[int]
    result: Optional[TallyResult]


def compute_slot_width(num_candidates: int) -> int:
    """Minimal m with 2^m > num_candidates >= 2^(m-1)"""
    return num_candidates.bit_length()


# ============================================================================
# ELECTION
# ============================================================================


class Election:
    """Single election instance owning all voter records and the aggregate"""

    def __init__(
        self,
        candidates: Sequence[str],
        voters: Iterable[str],
        prime: int,
        generator: int,
        slot_width: int,
        require_ballot_proofs: bool = False,
        group_name: str = "custom",
    ):
        candidates = list(candidates)
        voters = list(voters)
        self._validate_configuration(candidates, voters, prime, generator, slot_width)

        self._params = GroupParameters(prime=prime, generator=generator, name=group_name)
        self._candidates: Tuple[str, ...] = tuple(candidates)
        self._slot_width = slot_width
        self._require_ballot_proofs = require_ballot_proofs

        self._voters: Dict[str, VoterRecord] = {
            voter_id: VoterRecord(voter_id=voter_id) for voter_id in voters
        }
        self._key_owner: Dict[int, str] = {}
        self._registration_order: List[str] = []
        self._blinding_keys: Dict[str, int] = {}

        self._round = Round.REGISTRATION
        self._aggregate = IDENTITY
        self._vote_count = 0
        self._result: Optional[TallyResult] = None
        self._transitions: List[RoundTransition] = []
        self._lock = threading.RLock()

        if len(voters) >= (1 << slot_width):
            logger.warning(
                f"Roster of {len(voters)} voters can exceed the {slot_width}-bit slot width; "
                f"a candidate with {1 << slot_width} or more votes overflows into the next slot")

        logger.info(
            f"Initialized election: {len(candidates)} candidates, {len(voters)} voters, "
            f"group {group_name} ({prime.bit_length()} bits), slot width {slot_width}")

    @classmethod
    def from_config(cls, config: ElectionConfig) -> 'Election':
        try:
            params = config.group.resolve()
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e
        return cls(
            candidates=config.candidates,
            voters=config.voters,
            prime=params.prime,
            generator=params.generator,
            slot_width=config.effective_slot_width,
            require_ballot_proofs=config.require_ballot_proofs,
            group_name=params.name,
        )

    @staticmethod
    def _validate_configuration(candidates: List[str], voters: List[str], prime: int,
                                generator: int, slot_width: int):
        if not candidates:
            raise InvalidConfigurationError("Candidate list must not be empty")
        if len(set(candidates)) != len(candidates):
            raise InvalidConfigurationError("Candidate names must be unique")
        if not voters:
            raise InvalidConfigurationError("Voter roster must not be empty")
        if len(set(voters)) != len(voters):
            raise InvalidConfigurationError("Voter identities must be unique")
        if not all(isinstance(v, str) and v for v in voters):
            raise InvalidConfigurationError("Voter identities must be non-empty strings")

        try:
            validate_group(prime, generator)
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

        if isinstance(slot_width, bool) or not isinstance(slot_width, int) or slot_width < 1:
            raise InvalidConfigurationError(f"Slot width must be a positive integer, got {slot_width!r}")
        if not (1 << slot_width) > len(candidates) >= (1 << (slot_width - 1)):
            raise InvalidConfigurationError(
                f"Slot width {slot_width} does not satisfy 2^m > {len(candidates)} >= 2^(m-1)")

    # ------------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------------

    def _reject(self, error: ElectionError) -> ElectionError:
        logger.warning(f"Rejected in round {self._round.value}: {error}")
        return error

    def _require_round(self, expected: Round, operation: str):
        if self._round != expected:
            raise self._reject(WrongRoundError(
                f"{operation} requires round {expected.value}, current round is {self._round.value}"))

    def _require_finalized(self, query: str):
        if self._round != Round.CLOSED:
            raise self._reject(NotYetFinalizedError(
                f"{query} is only available once the election is closed"))

    def _require_roster_member(self, voter_id: str) -> VoterRecord:
        record = self._voters.get(voter_id)
        if record is None:
            raise self._reject(UnauthorizedError(f"{voter_id!r} is not on the voter roster"))
        return record

    def _transition(self, new_round: Round):
        if ROUND_ORDER.index(new_round) != ROUND_ORDER.index(self._round) + 1:
            raise RuntimeError(f"Illegal transition {self._round.value} -> {new_round.value}")
        self._transitions.append(RoundTransition(self._round, new_round))
        logger.info(f"Round transition: {self._round.value} -> {new_round.value}")
        self._round = new_round

    def _compute_blinding_keys(self):
        """y_i = prod_{j<i} pk_j / prod_{j>i} pk_j in registration order"""
        p = self._params.prime
        keys = [self._voters[voter_id].public_key for voter_id in self._registration_order]

        prefix = [IDENTITY]
        for key in keys:
            prefix.append(mul_mod(prefix[-1], key, p))
        suffix = [IDENTITY]
        for key in reversed(keys):
            suffix.append(mul_mod(suffix[-1], key, p))
        suffix.reverse()

        for index, voter_id in enumerate(self._registration_order):
            below = prefix[index]
            above = suffix[index + 1]
            self._blinding_keys[voter_id] = mul_mod(below, inverse(above, p), p)

    # ------------------------------------------------------------------------
    # Round 1: registration
    # ------------------------------------------------------------------------

    def submit_public_key(self, voter_id: str, public_key: int, commitment: int, response: int):
        """Register pk for voter_id after verifying the proof (gv, r)"""
        with self._lock:
            self._require_round(Round.REGISTRATION, "submit_public_key")
            record = self._require_roster_member(voter_id)
            if not record.eligible or record.registered:
                raise self._reject(UnauthorizedError(f"{voter_id!r} has already registered"))

            owner = self._key_owner.get(public_key)
            if owner is not None:
                raise self._reject(DuplicateKeyError(
                    f"Public key is already bound to {owner!r}"))

            p = self._params.prime
            if not is_group_element(public_key, p) or public_key == IDENTITY:
                raise self._reject(InvalidProofError("Public key is not a valid group element"))
            if not verify_knowledge(voter_id, public_key, commitment, response, self._params):
                raise self._reject(InvalidProofError(
                    f"Proof of knowledge for {voter_id!r} did not verify"))

            record.public_key = public_key
            record.registration_index = len(self._registration_order)
            record.registered_at = time.time()
            self._registration_order.append(voter_id)
            self._key_owner[public_key] = voter_id

            logger.info(
                f"Registered {voter_id} ({len(self._registration_order)}/{len(self._voters)})")

            if len(self._registration_order) == len(self._voters):
                self._compute_blinding_keys()
                self._transition(Round.VOTING)

    # ------------------------------------------------------------------------
    # Round 2: voting
    # ------------------------------------------------------------------------

    def submit_vote(self, voter_id: str, encrypted_vote: int, proof: Optional[BallotProof] = None):
        """Fold one ballot per voter into the aggregate"""
        with self._lock:
            self._require_round(Round.VOTING, "submit_vote")
            record = self._require_roster_member(voter_id)
            if not record.eligible:
                raise self._reject(UnauthorizedError(f"{voter_id!r} has already voted"))

            p = self._params.prime
            if not is_group_element(encrypted_vote, p):
                raise self._reject(InvalidBallotError("Ballot is not a valid group element"))

            if self._require_ballot_proofs:
                if proof is None:
                    raise self._reject(InvalidBallotError("A ballot membership proof is required"))
                valid = verify_ballot(
                    proof,
                    vote=encrypted_vote,
                    public_key=record.public_key,
                    blinding_key=self._blinding_keys[voter_id],
                    num_candidates=len(self._candidates),
                    slot_width=self._slot_width,
                    identity=voter_id,
                    params=self._params,
                )
                if not valid:
                    raise self._reject(InvalidBallotError(
                        f"Ballot membership proof for {voter_id!r} did not verify"))

            record.eligible = False
            record.voted_at = time.time()
            self._aggregate = fold(self._aggregate, encrypted_vote, p)
            self._vote_count += 1

            logger.info(f"Accepted ballot from {voter_id} ({self._vote_count}/{len(self._voters)})")

            if self._vote_count == len(self._voters):
                self._transition(Round.TALLY_PENDING)

    # ------------------------------------------------------------------------
    # Round 3: tally
    # ------------------------------------------------------------------------

    def resolve_tally(self, candidate_votes: Sequence[int]) -> TallyResult:
        """Accept the claimed counts iff g^(sum c_i 2^(i*m)) equals the aggregate"""
        with self._lock:
            self._require_round(Round.TALLY_PENDING, "resolve_tally")
            candidate_votes = list(candidate_votes)
            if len(candidate_votes) != len(self._candidates):
                raise self._reject(TallyMismatchError(
                    f"Expected {len(self._candidates)} counts, got {len(candidate_votes)}"))

            try:
                result = resolve(
                    self._aggregate,
                    candidate_votes,
                    self._candidates,
                    self._slot_width,
                    self._vote_count,
                    self._params,
                    check_total=self._require_ballot_proofs,
                )
            except TallyVerificationError as e:
                raise self._reject(TallyMismatchError(str(e))) from e

            self._result = result
            self._transition(Round.CLOSED)
            logger.info(f"Election closed: {result.counts}, winner {result.winner}")
            return result

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    def get_candidates(self) -> List[str]:
        return list(self._candidates)

    def get_round(self) -> Round:
        with self._lock:
            return self._round

    def get_candidate_votes(self, name: str) -> int:
        with self._lock:
            self._require_finalized("get_candidate_votes")
            if name not in self._result.counts:
                raise self._reject(UnknownCandidateError(f"Unknown candidate {name!r}"))
            return self._result.counts[name]

    def get_winner(self) -> Optional[str]:
        """Winning candidate, or None when no candidate received a vote"""
        with self._lock:
            self._require_finalized("get_winner")
            return self._result.winner

    def get_result(self) -> TallyResult:
        with self._lock:
            self._require_finalized("get_result")
            return self._result

    def get_blinding_key(self, voter_id: str) -> int:
        with self._lock:
            if self._round == Round.REGISTRATION:
                raise self._reject(WrongRoundError(
                    "Blinding keys are available once registration has completed"))
            self._require_roster_member(voter_id)
            return self._blinding_keys[voter_id]

    def get_public_key(self, voter_id: str) -> Optional[int]:
        with self._lock:
            return self._require_roster_member(voter_id).public_key

    def get_aggregate(self) -> int:
        with self._lock:
            if self._round not in (Round.TALLY_PENDING, Round.CLOSED):
                raise self._reject(WrongRoundError(
                    "The aggregate is published once every voter has voted"))
            return self._aggregate

    def snapshot(self) -> ElectionSnapshot:
        with self._lock:
            published = self._round in (Round.TALLY_PENDING, Round.CLOSED)
            return ElectionSnapshot(
                round=self._round,
                candidates=self._candidates,
                roster_size=len(self._voters),
                registration_count=len(self._registration_order),
                vote_count=self._vote_count,
                aggregate=self._aggregate if published else None,
                result=self._result,
            )

    @property
    def params(self) -> GroupParameters:
        return self._params

    @property
    def slot_width(self) -> int:
        return self._slot_width

    @property
    def require_ballot_proofs(self) -> bool:
        return self._require_ballot_proofs

    @property
    def roster(self) -> List[str]:
        return list(self._voters)

    @property
    def roster_size(self) -> int:
        return len(self._voters)

    @property
    def registration_count(self) -> int:
        with self._lock:
            return len(self._registration_order)

    @property
    def vote_count(self) -> int:
        with self._lock:
            return self._vote_count

    @property
    def transitions(self) -> List[RoundTransition]:
        with self._lock:
            return list(self._transitions)
