"""Random linear combinations and helper expressions used by the checksig region."""

from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.constraint_system.expression import Expression, expr


def rlc_value(values: list[int], randomness: int) -> int:
    """Return `values[0] + values[1] * r + values[2] * r^2 + ...` in the field."""
    acc = 0
    for value in reversed(values):
        acc = (value + randomness * acc) % FIELD_MODULUS
    return acc


def pk_rlc(public_key: bytes, randomness: int) -> int:
    """Return the RLC of a serialized public key, as accumulated on the stack when the key is pushed.

    The first byte of the key is the most significant one: the RLC is `rlc_value` of the reversed bytes.
    """
    return rlc_value(pk_bytes_swap_endianness(list(public_key)), randomness)


def pk_bytes_swap_endianness(values: list[int]) -> list[int]:
    """Reverse the order of a list of bytes."""
    return values[::-1]


def rlc_expression(values: list[Expression], powers_of_randomness: list[Expression]) -> Expression:
    """Return `values[0] + values[1] * powers[0] + values[2] * powers[1] + ...`.

    Args:
        values (list[Expression]): The values to combine.
        powers_of_randomness (list[Expression]): The expressions `r, r^2, r^3, ...`. There must be at least
            `len(values) - 1` of them.
    """
    if len(powers_of_randomness) < len(values) - 1:
        msg = f"Not enough powers of randomness: {len(powers_of_randomness)} "
        msg += f"for {len(values)} values"
        raise ValueError(msg)
    out = values[0]
    for value, power in zip(values[1:], powers_of_randomness):
        out = out + value * power
    return out


def range_check(value: Expression, allowed_values: list[int]) -> Expression:
    """Return the expression `(value - a_0) * (value - a_1) * ...`, vanishing iff `value` is one of `allowed_values`."""
    out = expr(1)
    for allowed_value in allowed_values:
        out = out * (value - allowed_value)
    return out
