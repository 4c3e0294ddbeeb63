"""Collection of the public keys consumed by the successful `OP_CHECKSIG`s of a script."""

import logging
from dataclasses import dataclass

from ecdsa import SECP256k1, VerifyingKey
from ecdsa.errors import MalformedPointError
from tx_engine import Script, encode_num

from src.bitcoinvm.constants import (
    COMPRESSED_PK_LENGTH,
    MAX_STACK_DEPTH,
    OP_0,
    OP_CHECKSIG,
    OP_NOP,
    OP_RESERVED,
    PREFIX_PK_COMPRESSED_EVEN_Y,
    PREFIX_PK_COMPRESSED_ODD_Y,
    PREFIX_PK_UNCOMPRESSED,
    PUSHDATA_LENGTH_BYTES,
    UNCOMPRESSED_PK_LENGTH,
)
from src.bitcoinvm.execution.opcode_table import op1_to_op16_indicator, opcode_enabled, push1_to_push75_indicator
from src.bitcoinvm.execution.script_parser import MalformedScriptError, to_script_bytes
from src.bitcoinvm.types.stack_elements import SignatureFlag, StackData, StackElement

logger = logging.getLogger(__name__)

PK_LENGTHS = {
    PREFIX_PK_COMPRESSED_EVEN_Y: COMPRESSED_PK_LENGTH,
    PREFIX_PK_COMPRESSED_ODD_Y: COMPRESSED_PK_LENGTH,
    PREFIX_PK_UNCOMPRESSED: UNCOMPRESSED_PK_LENGTH,
}


class InvalidPublicKeyError(ValueError):
    """The bytes consumed by `OP_CHECKSIG` are not a SEC1 encoded point of secp256k1."""


@dataclass(frozen=True)
class PublicKeyInScript:
    """A public key consumed by a successful `OP_CHECKSIG`.

    Attributes:
        bytes (bytes): The public key as serialized in the script.
        point (tuple[int, int]): The affine coordinates of the public key.
    """

    bytes: bytes
    point: tuple[int, int]

    @property
    def prefix(self) -> int:
        return self.bytes[0]

    @property
    def is_compressed(self) -> bool:
        return self.prefix != PREFIX_PK_UNCOMPRESSED


def parse_public_key(data: bytes) -> PublicKeyInScript:
    """Decode a SEC1 encoded public key of secp256k1.

    Args:
        data (bytes): The encoded public key, `0x02 || x`, `0x03 || x` or `0x04 || x || y`.

    Returns:
        The public key and its affine coordinates.

    Raises:
        InvalidPublicKeyError: If the prefix is not supported, if the length does not match the prefix, or if
            the encoded point is not on secp256k1.
    """
    if len(data) == 0 or data[0] not in PK_LENGTHS:
        msg = "Public keys must start with 0x02, 0x03 or 0x04: "
        msg += f"got {data[:1].hex() or 'empty data'}"
        raise InvalidPublicKeyError(msg)
    if len(data) != PK_LENGTHS[data[0]]:
        msg = f"Public keys with prefix {data[:1].hex()} have {PK_LENGTHS[data[0]]} bytes: "
        msg += f"got {len(data)}"
        raise InvalidPublicKeyError(msg)
    try:
        verifying_key = VerifyingKey.from_string(data, curve=SECP256k1)
    except MalformedPointError as err:
        msg = f"The public key {data.hex()} is not a point of secp256k1"
        raise InvalidPublicKeyError(msg) from err
    point = verifying_key.pubkey.point
    return PublicKeyInScript(data, (int(point.x()), int(point.y())))


def _read(script: bytes, position: int, n: int) -> bytes:
    if position + n > len(script):
        msg = f"Push of {n} bytes at position {position} runs past the end of the script"
        raise MalformedScriptError(msg)
    return script[position : position + n]


def _push(stack: list[StackElement], element: StackElement, position: int) -> None:
    if len(stack) >= MAX_STACK_DEPTH:
        msg = f"Stack overflow at position {position}: "
        msg += f"the stack holds at most {MAX_STACK_DEPTH} elements"
        raise MalformedScriptError(msg)
    _push(stack, element, opcode_position)


def collect_public_keys(script: bytes | Script, initial_stack: list[StackElement]) -> list[PublicKeyInScript]:
    """Return the public keys consumed by the `OP_CHECKSIG`s of `script` whose signature flag is valid.

    The stack holds signature flags and pushed data, `initial_stack[0]` being the top of the stack.
    `OP_CHECKSIG` pops the public key on top of the stack and the signature flag below it, then pushes the flag
    back as its result.

    Args:
        script (bytes | Script): The script.
        initial_stack (list[StackElement]): The stack before the execution of the script, top first.

    Returns:
        The public keys, in the order in which they are consumed.

    Raises:
        MalformedScriptError: If the script contains an unsupported opcode, a push running past the end of the
            script, an `OP_PUSHDATA` with a zero length, a push onto a full stack of `MAX_STACK_DEPTH` elements,
            or an `OP_CHECKSIG` not finding a public key above a signature flag.
        InvalidPublicKeyError: If a public key consumed with a valid flag is not a point of secp256k1.
    """
    script = to_script_bytes(script)
    stack = list(initial_stack)
    public_keys = []

    position = 0
    while position < len(script):
        opcode_position = position
        opcode = script[position]
        if not opcode_enabled(opcode):
            msg = f"Unsupported opcode {hex(opcode)} at position {position}"
            raise MalformedScriptError(msg)
        position += 1

        if opcode == OP_0:
            _push(stack, StackData(b""), opcode_position)
        elif op1_to_op16_indicator(opcode):
            _push(stack, StackData(encode_num(opcode - OP_RESERVED)), opcode_position)
        elif push1_to_push75_indicator(opcode):
            _push(stack, StackData(_read(script, position, opcode)), opcode_position)
            position += opcode
        elif opcode in PUSHDATA_LENGTH_BYTES:
            length_field = _read(script, position, PUSHDATA_LENGTH_BYTES[opcode])
            position += len(length_field)
            length = int.from_bytes(length_field, "little")
            if length == 0:
                msg = f"OP_PUSHDATA with a zero length field at position {position - len(length_field) - 1}"
                raise MalformedScriptError(msg)
            _push(stack, StackData(_read(script, position, length)), opcode_position)
            position += length
        elif opcode == OP_CHECKSIG:
            if len(stack) < 2:  # noqa: PLR2004
                msg = f"OP_CHECKSIG at position {position - 1} needs two stack elements: got {len(stack)}"
                raise MalformedScriptError(msg)
            public_key, flag = stack[0], stack[1]
            if not isinstance(public_key, StackData):
                msg = f"OP_CHECKSIG at position {position - 1} expects a public key on top of the stack"
                raise MalformedScriptError(msg)
            if not isinstance(flag, SignatureFlag):
                msg = f"OP_CHECKSIG at position {position - 1} expects a signature flag below the public key"
                raise MalformedScriptError(msg)
            if flag == SignatureFlag.VALID:
                public_keys.append(parse_public_key(public_key.data))
            stack = [flag, *stack[2:]]
        elif opcode != OP_NOP:
            msg = f"Opcode {hex(opcode)} at position {position - 1} is enabled but not handled"
            raise MalformedScriptError(msg)

    logger.debug("Collected %d public keys", len(public_keys))
    return public_keys
