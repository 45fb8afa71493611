"""
Fiat-Shamir Schnorr Proof of Knowledge of a Discrete Logarithm
==============================================================

Prover:   pk = g^x,  gv = g^v,  c = H(g, gv, pk, identity),  r = v - x*c (mod p-1)
Verifier: recompute c and check gv == g^r * pk^c (mod p)

The challenge is bound to the prover's identity, so a proof published by one
voter cannot be replayed under another voter's registration.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives import constant_time

from arith import GroupParameters, power, mul_mod, is_group_element, encode_element

logger = logging.getLogger(__name__)

IDENTITY_LENGTH_BYTES = 4


@dataclass(frozen=True)
class SchnorrProof:
    """Registration payload (pk, gv, r)"""
    public_key: int
    commitment: int
    response: int


def challenge_hash(params: GroupParameters, *elements: int, identity: str) -> int:
    """SHA-256 over fixed-width group elements and the length-prefixed identity"""
    h = hashlib.sha256()
    for element in elements:
        h.update(encode_element(element, params.prime))
    encoded_identity = identity.encode('utf-8')
    h.update(len(encoded_identity).to_bytes(IDENTITY_LENGTH_BYTES, 'big'))
    h.update(encoded_identity)
    return int.from_bytes(h.digest(), 'big')


def elements_equal(a: int, b: int, params: GroupParameters) -> bool:
    """Constant-time comparison of two group elements"""
    return constant_time.bytes_eq(
        encode_element(a, params.prime), encode_element(b, params.prime))


# ============================================================================
# PROVER
# ============================================================================


def generate_secret(params: GroupParameters) -> int:
    """Uniform secret exponent in [1, p - 2]"""
    return secrets.randbelow(params.exponent_modulus - 1) + 1


def derive_public_key(secret: int, params: GroupParameters) -> int:
    return power(params.generator, secret, params.prime)


def prove_knowledge(secret: int, identity: str, params: GroupParameters) -> SchnorrProof:
    """Prove knowledge of the secret behind g^secret, bound to identity"""
    public_key = derive_public_key(secret, params)
    nonce = generate_secret(params)
    commitment = power(params.generator, nonce, params.prime)

    challenge = challenge_hash(
        params, params.generator, commitment, public_key, identity=identity)
    response = (nonce - secret * challenge) % params.exponent_modulus

    return SchnorrProof(public_key=public_key, commitment=commitment, response=response)


# ============================================================================
# VERIFIER
# ============================================================================


def verify_knowledge(identity: str, public_key: int, commitment: int, response: int,
                     params: GroupParameters) -> bool:
    """Accept iff gv == g^r * pk^c (mod p) for c = H(g, gv, pk, identity)"""
    p = params.prime
    if not (is_group_element(public_key, p) and is_group_element(commitment, p)):
        logger.debug("Rejected proof: public key or commitment outside the group")
        return False
    if not isinstance(response, int) or response < 0:
        logger.debug("Rejected proof: response is not a non-negative integer")
        return False

    challenge = challenge_hash(
        params, params.generator, commitment, public_key, identity=identity)
    expected = mul_mod(
        power(params.generator, response, p),
        power(public_key, challenge, p),
        p,
    )
    return elements_equal(commitment, expected, params)


def verify_proof(identity: str, proof: SchnorrProof, params: GroupParameters) -> bool:
    return verify_knowledge(
        identity, proof.public_key, proof.commitment, proof.response, params)
