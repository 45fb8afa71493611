"""Prime-field arithmetic shared by the proof, aggregation and tally layers."""

from .modular import (
    # Core operations
    power,
    mul_mod,
    add_mod,
    inverse,

    # Group elements
    is_group_element,
    element_byte_length,
    encode_element,

    # Group parameters
    GroupParameters,
    MODP_1024,
    MODP_2048,
    get_group,
    validate_group,
)

__all__ = [
    'power',
    'mul_mod',
    'add_mod',
    'inverse',
    'is_group_element',
    'element_byte_length',
    'encode_element',
    'GroupParameters',
    'MODP_1024',
    'MODP_2048',
    'get_group',
    'validate_group',
]
