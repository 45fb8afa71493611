"""Voter-side client: holds the secret exponent and builds registration and ballot payloads."""

import logging
from typing import Optional, Tuple, Union

from arith import GroupParameters, power, mul_mod
from tally import encode_vote
from zk import (
    BallotProof,
    SchnorrProof,
    derive_public_key,
    generate_secret,
    prove_ballot,
    prove_knowledge,
)
from .errors import UnknownCandidateError

logger = logging.getLogger(__name__)


class VoterClient:
    """One roster member's keys and protocol messages"""

    def __init__(self, voter_id: str, params: GroupParameters, secret: Optional[int] = None):
        self.voter_id = voter_id
        self.params = params
        self._secret = secret if secret is not None else generate_secret(params)
        self.public_key = derive_public_key(self._secret, params)

    def registration(self) -> SchnorrProof:
        return prove_knowledge(self._secret, self.voter_id, self.params)

    def ballot(self, candidate_index: int, blinding_key: int, num_candidates: int,
               slot_width: int, with_proof: bool = False) -> Tuple[int, Optional[BallotProof]]:
        """Blinded ballot y^x * g^(2^(j*m)) and, if requested, its membership proof"""
        if not 0 <= candidate_index < num_candidates:
            raise ValueError(f"Candidate index {candidate_index} out of range")

        p = self.params.prime
        vote = mul_mod(
            power(blinding_key, self._secret, p),
            encode_vote(candidate_index, slot_width, self.params),
            p,
        )
        proof = None
        if with_proof:
            proof = prove_ballot(
                self._secret, candidate_index, vote, blinding_key,
                num_candidates, slot_width, self.voter_id, self.params)
        return vote, proof

    def register(self, election) -> SchnorrProof:
        proof = self.registration()
        election.submit_public_key(
            self.voter_id, proof.public_key, proof.commitment, proof.response)
        return proof

    def vote(self, election, candidate: Union[int, str]) -> int:
        """Cast a ballot for a candidate given by index or name"""
        candidates = election.get_candidates()
        if isinstance(candidate, str):
            if candidate not in candidates:
                raise UnknownCandidateError(f"Unknown candidate {candidate!r}")
            candidate = candidates.index(candidate)
        elif not 0 <= candidate < len(candidates):
            raise UnknownCandidateError(f"Candidate index {candidate} out of range")

        blinding_key = election.get_blinding_key(self.voter_id)
        vote, proof = self.ballot(
            candidate, blinding_key, len(candidates), election.slot_width,
            with_proof=election.require_ballot_proofs)
        election.submit_vote(self.voter_id, vote, proof=proof)
        logger.debug(f"{self.voter_id} cast a ballot")
        return vote
