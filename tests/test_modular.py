import secrets

import pytest

from arith import (
    MODP_1024,
    MODP_2048,
    add_mod,
    encode_element,
    get_group,
    inverse,
    is_group_element,
    mul_mod,
    power,
    validate_group,
)


class TestModularOperations:

    def test_power_matches_builtin(self):
        p = MODP_1024.prime
        for _ in range(5):
            base = secrets.randbelow(p)
            exponent = secrets.randbits(1024)
            assert power(base, exponent, p) == pow(base, exponent, p)

    def test_power_edge_cases(self):
        assert power(7, 0, 13) == 1
        assert power(0, 5, 13) == 0
        assert power(5, 3, 1) == 0
        assert power(2, 10, 1_000_003) == 1024

    def test_power_rejects_negative_exponent_and_bad_modulus(self):
        with pytest.raises(ValueError):
            power(2, -1, 13)
        with pytest.raises(ValueError):
            power(2, 3, 0)

    def test_mul_and_add(self):
        assert mul_mod(6, 7, 13) == 42 % 13
        assert add_mod(12, 5, 13) == 4
        assert add_mod(0, 0, 13) == 0

    def test_inverse(self):
        p = MODP_1024.prime
        a = secrets.randbelow(p - 2) + 2
        assert mul_mod(a, inverse(a, p), p) == 1
        with pytest.raises(ValueError):
            inverse(0, p)
        with pytest.raises(ValueError):
            inverse(p, p)


class TestGroupElements:

    def test_range(self):
        assert is_group_element(1, 23)
        assert is_group_element(22, 23)
        assert not is_group_element(0, 23)
        assert not is_group_element(23, 23)
        assert not is_group_element(-4, 23)

    def test_encoding_is_fixed_width(self):
        p = MODP_1024.prime
        assert len(encode_element(1, p)) == 128
        assert len(encode_element(p - 1, p)) == 128
        assert len(encode_element(5, MODP_2048.prime)) == 256


class TestGroupParameters:

    def test_named_groups(self):
        assert get_group("modp-1024") is MODP_1024
        assert get_group("modp-2048").prime.bit_length() == 2048
        with pytest.raises(ValueError):
            get_group("modp-512")

    def test_named_groups_validate(self):
        validate_group(MODP_1024.prime, MODP_1024.generator)
        validate_group(MODP_2048.prime, MODP_2048.generator)

    def test_exponent_modulus(self):
        assert MODP_1024.exponent_modulus == MODP_1024.prime - 1
        assert MODP_1024.byte_length == 128

    @pytest.mark.parametrize("prime, generator", [
        (21, 2),        # composite
        (1, 2),
        (23, 1),        # degenerate generator
        (23, 22),       # -1 has order 2
        (23, 23),
    ])
    def test_validate_group_rejects(self, prime, generator):
        with pytest.raises(ValueError):
            validate_group(prime, generator)
