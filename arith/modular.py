"""
Modular Arithmetic over Safe-Prime Fields
=========================================
Exponentiation, multiplication and addition modulo a large prime, plus the
named groups used by the election engine.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import galois

logger = logging.getLogger(__name__)

# ============================================================================
# NAMED GROUPS
# ============================================================================

# 2048-bit safe prime from RFC 3526 (MODP Group 14)
SAFE_PRIME_2048 = int("""
32317006071311007300338913926423828248817941241140239112842009751400741706634354222619689417363569347117901737909704191754605873209195028853758986185622153212175412514901774520270235796078236248884246189477587641105928646099411723245426622522193230540919037680524235519125679715870117001058055877651038861847280257976054903569732561526167081339361799541336476559160368317896729073178384589680639671900977202194168647225871031411336429319536193471636533209717077448227988588565369208645296636077250268955505928362751121174096972998068410554359584866583291642136218231078990999448652468262416972035911852507045361090559
""".replace('\n', ''))

# 1024-bit safe prime from RFC 2409 (Oakley Group 2)
SAFE_PRIME_1024 = int("""
179769313486231590770839156793787453197860296048756011706444423684197180216158519368947833795864925541502180565485980503646440548199239100050792877003355816639229553136239076508735759914822574862575007425302077447712589550957937778424442426617334727629299387668709205606050270810842907692932019128194467627007
""".replace('\n', ''))


@dataclass(frozen=True)
class GroupParameters:
    """Prime modulus and generator of the election group"""
    prime: int
    generator: int
    name: str = "custom"

    @property
    def exponent_modulus(self) -> int:
        """Exponents are reduced modulo p - 1 (Fermat)"""
        return self.prime - 1

    @property
    def byte_length(self) -> int:
        return element_byte_length(self.prime)


MODP_1024 = GroupParameters(prime=SAFE_PRIME_1024, generator=2, name="modp-1024")
MODP_2048 = GroupParameters(prime=SAFE_PRIME_2048, generator=2, name="modp-2048")

NAMED_GROUPS: Dict[str, GroupParameters] = {
    MODP_1024.name: MODP_1024,
    MODP_2048.name: MODP_2048,
}


def get_group(name: str) -> GroupParameters:
    """Look up a named group"""
    try:
        return NAMED_GROUPS[name]
    except KeyError:
        raise ValueError(
            f"Unknown group '{name}', expected one of {sorted(NAMED_GROUPS)}") from None


def validate_group(prime: int, generator: int) -> None:
    """Reject a modulus that is not prime or a degenerate generator"""
    if not isinstance(prime, int) or not isinstance(generator, int):
        raise ValueError("Group parameters must be integers")
    if prime < 5 or not galois.is_prime(prime):
        raise ValueError(f"Modulus is not a prime >= 5 ({prime.bit_length()} bits)")
    if not 2 <= generator <= prime - 2:
        raise ValueError(f"Generator must lie in [2, p - 2], got {generator}")


# ============================================================================
# CORE OPERATIONS
# ============================================================================


def power(base: int, exponent: int, modulus: int) -> int:
    """Compute base^exponent mod modulus by square-and-multiply"""
    if modulus < 1:
        raise ValueError("Modulus must be positive")
    if exponent < 0:
        raise ValueError("Exponent must be non-negative")
    if modulus == 1:
        return 0

    result = 1
    base %= modulus
    while exponent:
        if exponent & 1:
            result = (result * base) % modulus
        base = (base * base) % modulus
        exponent >>= 1
    return result


def mul_mod(a: int, b: int, modulus: int) -> int:
    if modulus < 1:
        raise ValueError("Modulus must be positive")
    return (a * b) % modulus


def add_mod(a: int, b: int, modulus: int) -> int:
    if modulus < 1:
        raise ValueError("Modulus must be positive")
    return (a + b) % modulus


def inverse(a: int, modulus: int) -> int:
    """Multiplicative inverse in a prime field, a^(p-2) mod p"""
    if a % modulus == 0:
        raise ValueError("Zero has no multiplicative inverse")
    return power(a, modulus - 2, modulus)


# ============================================================================
# GROUP ELEMENTS
# ============================================================================


def is_group_element(value: int, modulus: int) -> bool:
    return isinstance(value, int) and 1 <= value < modulus


def element_byte_length(modulus: int) -> int:
    return (modulus.bit_length() + 7) // 8


def encode_element(value: int, modulus: int) -> bytes:
    """Fixed-width big-endian encoding of a field element"""
    return (value % modulus).to_bytes(element_byte_length(modulus), 'big')
