"""
Zero-knowledge proofs for the self-tallying election:
Schnorr proofs of key knowledge and disjunctive ballot membership proofs.
"""

from .schnorr import (
    SchnorrProof,
    challenge_hash,
    generate_secret,
    derive_public_key,
    prove_knowledge,
    verify_knowledge,
    verify_proof,
)
from .ballot_proofs import BallotProof, prove_ballot, verify_ballot

__all__ = [
    'SchnorrProof',
    'challenge_hash',
    'generate_secret',
    'derive_public_key',
    'prove_knowledge',
    'verify_knowledge',
    'verify_proof',
    'BallotProof',
    'prove_ballot',
    'verify_ballot',
]
