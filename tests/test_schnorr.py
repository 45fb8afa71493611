import secrets
from dataclasses import replace

from arith import power, mul_mod
from zk import (
    SchnorrProof,
    challenge_hash,
    derive_public_key,
    generate_secret,
    prove_knowledge,
    verify_knowledge,
    verify_proof,
)


class TestProofOfKnowledge:

    def test_honest_proof_verifies(self, params):
        secret = generate_secret(params)
        proof = prove_knowledge(secret, "alice", params)
        assert proof.public_key == derive_public_key(secret, params)
        assert verify_proof("alice", proof, params)
        assert verify_knowledge("alice", proof.public_key, proof.commitment, proof.response, params)

    def test_response_is_reduced(self, params):
        proof = prove_knowledge(generate_secret(params), "alice", params)
        assert 0 <= proof.response < params.exponent_modulus

    def test_proof_is_bound_to_identity(self, params):
        proof = prove_knowledge(generate_secret(params), "alice", params)
        assert not verify_proof("bob", proof, params)

    def test_tampered_fields_are_rejected(self, params):
        proof = prove_knowledge(generate_secret(params), "alice", params)
        assert not verify_proof("alice", replace(proof, response=proof.response + 1), params)
        assert not verify_proof(
            "alice", replace(proof, commitment=mul_mod(proof.commitment, 2, params.prime)), params)
        assert not verify_proof(
            "alice", replace(proof, public_key=mul_mod(proof.public_key, 2, params.prime)), params)

    def test_forgery_without_secret_is_rejected(self, params):
        # A public key whose discrete log the forger does not know
        public_key = derive_public_key(generate_secret(params), params)
        for _ in range(3):
            forged = SchnorrProof(
                public_key=public_key,
                commitment=power(params.generator, secrets.randbelow(params.prime), params.prime),
                response=secrets.randbelow(params.exponent_modulus),
            )
            assert not verify_proof("mallory", forged, params)

    def test_out_of_group_values_are_rejected(self, params):
        proof = prove_knowledge(generate_secret(params), "alice", params)
        assert not verify_proof("alice", replace(proof, public_key=0), params)
        assert not verify_proof("alice", replace(proof, public_key=params.prime), params)
        assert not verify_proof("alice", replace(proof, commitment=0), params)
        assert not verify_proof("alice", replace(proof, response=-1), params)


class TestChallengeHash:

    def test_deterministic_and_identity_sensitive(self, params):
        a = challenge_hash(params, 2, 3, 5, identity="alice")
        assert a == challenge_hash(params, 2, 3, 5, identity="alice")
        assert a != challenge_hash(params, 2, 3, 5, identity="bob")
        assert a != challenge_hash(params, 2, 5, 3, identity="alice")

    def test_identity_is_length_prefixed(self, params):
        assert challenge_hash(params, 2, identity="ab") != challenge_hash(params, 2, identity="a")
        assert 0 <= challenge_hash(params, 2, identity="") < 2 ** 256
