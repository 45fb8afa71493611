"""
Ballot Membership Proof
=======================

Disjunctive Chaum-Pedersen proof (Cramer-Damgard-Schoenmakers OR composition)
that a blinded ballot encodes exactly one candidate slot:

    OR_j  log_g(pk) == log_y(vote / g^(2^(j*m)))

where pk = g^x is the voter's registered key and y is the voter's blinding
key. Only the branch for the chosen slot is proven honestly, every other
branch is simulated, and the branch challenges must sum to the Fiat-Shamir
challenge modulo p - 1.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import List

from arith import GroupParameters, power, mul_mod, inverse, is_group_element
from tally.aggregation import slot_value
from .schnorr import challenge_hash, elements_equal

logger = logging.getLogger(__name__)


@dataclass
class BallotProof:
    """One (a, b, c, r) tuple per candidate slot"""
    commitments_a: List[int] = field(default_factory=list)
    commitments_b: List[int] = field(default_factory=list)
    challenges: List[int] = field(default_factory=list)
    responses: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.challenges)


def _slot_targets(vote: int, num_candidates: int, slot_width: int,
                  params: GroupParameters) -> List[int]:
    """vote / g^(2^(j*m)) for every slot j"""
    p = params.prime
    return [
        mul_mod(vote, inverse(power(params.generator, slot_value(j, slot_width), p), p), p)
        for j in range(num_candidates)
    ]


def _ballot_challenge(params: GroupParameters, identity: str, public_key: int,
                      blinding_key: int, vote: int, commitments_a: List[int],
                      commitments_b: List[int]) -> int:
    transcript = [params.generator, public_key, blinding_key, vote]
    for a, b in zip(commitments_a, commitments_b):
        transcript.extend((a, b))
    return challenge_hash(params, *transcript, identity=identity) % params.exponent_modulus


def prove_ballot(secret: int, candidate_index: int, vote: int, blinding_key: int,
                 num_candidates: int, slot_width: int, identity: str,
                 params: GroupParameters) -> BallotProof:
    """Prove that vote == y^secret * g^(2^(candidate_index*m)) without revealing the index"""
    p = params.prime
    q = params.exponent_modulus
    g = params.generator

    if not 0 <= candidate_index < num_candidates:
        raise ValueError(f"Candidate index {candidate_index} out of range")

    public_key = power(g, secret, p)
    targets = _slot_targets(vote, num_candidates, slot_width, params)
    if targets[candidate_index] != power(blinding_key, secret, p):
        raise ValueError("Ballot does not encode the claimed candidate")

    commitments_a = [0] * num_candidates
    commitments_b = [0] * num_candidates
    challenges = [0] * num_candidates
    responses = [0] * num_candidates

    # Honest branch commitments
    witness = secrets.randbelow(q)
    commitments_a[candidate_index] = power(g, witness, p)
    commitments_b[candidate_index] = power(blinding_key, witness, p)

    # Simulated branches: pick (c, r) first, then solve for (a, b)
    for j in range(num_candidates):
        if j == candidate_index:
            continue
        challenges[j] = secrets.randbelow(q)
        responses[j] = secrets.randbelow(q)
        commitments_a[j] = mul_mod(
            power(g, responses[j], p), power(public_key, challenges[j], p), p)
        commitments_b[j] = mul_mod(
            power(blinding_key, responses[j], p), power(targets[j], challenges[j], p), p)

    total = _ballot_challenge(params, identity, public_key, blinding_key, vote,
                              commitments_a, commitments_b)
    challenges[candidate_index] = (total - sum(challenges)) % q
    responses[candidate_index] = (witness - secret * challenges[candidate_index]) % q

    return BallotProof(
        commitments_a=commitments_a,
        commitments_b=commitments_b,
        challenges=challenges,
        responses=responses,
    )


def verify_ballot(proof: BallotProof, vote: int, public_key: int, blinding_key: int,
                  num_candidates: int, slot_width: int, identity: str,
                  params: GroupParameters) -> bool:
    """Check every branch equation and that the branch challenges sum to H(transcript)"""
    p = params.prime
    q = params.exponent_modulus
    g = params.generator

    lengths = {len(proof.commitments_a), len(proof.commitments_b),
               len(proof.challenges), len(proof.responses)}
    if lengths != {num_candidates}:
        logger.debug(f"Rejected ballot proof: expected {num_candidates} branches")
        return False
    if not all(is_group_element(x, p) for x in (vote, public_key, blinding_key)):
        return False
    if not all(is_group_element(x, p) for x in proof.commitments_a + proof.commitments_b):
        return False
    if not all(isinstance(x, int) and 0 <= x < q for x in proof.challenges + proof.responses):
        return False

    total = _ballot_challenge(params, identity, public_key, blinding_key, vote,
                              proof.commitments_a, proof.commitments_b)
    if sum(proof.challenges) % q != total:
        logger.debug("Rejected ballot proof: challenge split does not match transcript")
        return False

    targets = _slot_targets(vote, num_candidates, slot_width, params)
    for j in range(num_candidates):
        c, r = proof.challenges[j], proof.responses[j]
        expected_a = mul_mod(power(g, r, p), power(public_key, c, p), p)
        expected_b = mul_mod(power(blinding_key, r, p), power(targets[j], c, p), p)
        if not elements_equal(proof.commitments_a[j], expected_a, params):
            return False
        if not elements_equal(proof.commitments_b[j], expected_b, params):
            return False
    return True
