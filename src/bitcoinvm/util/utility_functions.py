"""Utility functions."""

from tx_engine import Script, hash256d

from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.execution.script_parser import to_script_bytes
from src.bitcoinvm.types.stack_elements import SignatureFlag


def p2pk_script(public_key: bytes) -> Script:
    """Return the script `<public_key> OP_CHECKSIG`."""
    out = Script()
    out.append_pushdata(public_key)
    out += Script.parse_string("OP_CHECKSIG")
    return out


def stack_values(flags: list[SignatureFlag]) -> list[int]:
    """Return the field values of the signature flags, as found on the stack of the execution region."""
    return [flag.value for flag in flags]


def derive_randomness(script: bytes | Script, *data: bytes) -> int:
    """Derive the randomness of the RLCs from the script and any further public data.

    The randomness is the double SHA256 of the concatenated bytes, reduced modulo `FIELD_MODULUS`.
    """
    preimage = to_script_bytes(script) + b"".join(data)
    return int.from_bytes(hash256d(preimage), "big") % FIELD_MODULUS
