"""Witness generation for the execution region.

The interpreter replays a `scriptPubKey` byte by byte and records, for every byte, the state the execution gates
constrain. The script is padded with `OP_NOP` to `MAX_SCRIPT_PUBKEY_SIZE` bytes, so that every script yields a
trace of the same shape:
    - row 0: the state before the first byte (initial stack, RLC of the whole script, script length),
    - rows 1..MAX_SCRIPT_PUBKEY_SIZE: the state after each byte,
    - a trailing row, repeating the final state, on which the final checks are enforced.

All values are field elements modulo `FIELD_MODULUS`.
"""

from dataclasses import dataclass, field
from enum import Enum

from tx_engine import Script

from src.bitcoinvm.constants import (
    EMPTY_ARRAY_REPRESENTATION,
    FIELD_MODULUS,
    MAX_SCRIPT_PUBKEY_SIZE,
    MAX_STACK_DEPTH,
    OP_0,
    OP_CHECKSIG,
    OP_NOP,
    OP_RESERVED,
    PUSHDATA_LENGTH_BYTES,
)
from src.bitcoinvm.execution.opcode_table import (
    op1_to_op16_indicator,
    opcode_enabled,
    push1_to_push75_indicator,
)


class MalformedScriptError(ValueError):
    """The script cannot be executed by the interpreter."""


class ParseMode(Enum):
    """What the next byte of the script is.

    IDLE: the next byte is an opcode.
    PENDING_FIXED_PUSH: the next byte is pushed data.
    PENDING_LENGTH_FIELD: the next byte belongs to the little-endian length field of an `OP_PUSHDATA`.
    """

    IDLE = "idle"
    PENDING_FIXED_PUSH = "pending_fixed_push"
    PENDING_LENGTH_FIELD = "pending_length_field"


@dataclass(frozen=True)
class TraceRow:
    """The state of the interpreter after a byte of the script.

    Attributes:
        opcode (int): The byte processed on the row.
        script_rlc_acc (int): The RLC of the bytes following the byte of the row.
        num_script_bytes_remaining (int): The number of bytes following the byte of the row.
        stack (tuple[int, ...]): The `MAX_STACK_DEPTH` stack elements, top first.
        num_data_bytes_remaining (int): The number of push data bytes still to read.
        num_data_length_bytes_remaining (int): The number of length field bytes still to read.
        data_length_acc (int): The part of the push data length decoded so far.
        num_data_length_acc_constant (int): The weight of the next length field byte.
        pk_rlc_acc (int): The Horner fold of the public keys consumed by successful `OP_CHECKSIG`s.
        num_checksig_opcodes (int): The number of successful `OP_CHECKSIG`s.
    """

    opcode: int
    script_rlc_acc: int
    num_script_bytes_remaining: int
    stack: tuple[int, ...]
    num_data_bytes_remaining: int = 0
    num_data_length_bytes_remaining: int = 0
    data_length_acc: int = 0
    num_data_length_acc_constant: int = 0
    pk_rlc_acc: int = 0
    num_checksig_opcodes: int = 0

    @property
    def stack_top(self) -> int:
        return self.stack[0]


@dataclass
class Trace:
    """The rows of the execution region for a script.

    Attributes:
        script (bytes): The script.
        randomness (int): The randomness used in the RLCs.
        rows (list[TraceRow]): The first row, one row per padded byte and the trailing row.
    """

    script: bytes
    randomness: int
    rows: list[TraceRow] = field(default_factory=list)

    @property
    def first_row(self) -> TraceRow:
        return self.rows[0]

    @property
    def final_row(self) -> TraceRow:
        return self.rows[-1]

    @property
    def stack_top(self) -> int:
        return self.final_row.stack_top

    @property
    def script_length(self) -> int:
        return len(self.script)

    @property
    def initial_script_rlc(self) -> int:
        return self.first_row.script_rlc_acc


def to_script_bytes(script: bytes | Script) -> bytes:
    """Return the serialization of `script`."""
    if isinstance(script, Script):
        return bytes(script.raw_serialize())
    return bytes(script)


def script_rlc(script: bytes | Script, randomness: int) -> int:
    """Return the RLC of `script`, the first byte being the constant term.

    This is the Horner evaluation of the reversed byte sequence: `b_0 + r * (b_1 + r * (b_2 + ...))`.
    """
    acc = 0
    for byte in reversed(to_script_bytes(script)):
        acc = (byte + randomness * acc) % FIELD_MODULUS
    return acc


def pad_stack(initial_stack: list[int] | None) -> tuple[int, ...]:
    """Pad `initial_stack` (top first) with zeros to `MAX_STACK_DEPTH` elements."""
    initial_stack = [] if initial_stack is None else list(initial_stack)
    if len(initial_stack) > MAX_STACK_DEPTH:
        msg = f"The initial stack has {len(initial_stack)} elements, "
        msg += f"the maximum is {MAX_STACK_DEPTH}"
        raise ValueError(msg)
    return tuple(x % FIELD_MODULUS for x in initial_stack) + (0,) * (MAX_STACK_DEPTH - len(initial_stack))


class ScriptPubkeyParseState:
    """State machine executing a script one byte at a time."""

    def __init__(self, randomness: int, stack: tuple[int, ...], depth: int = 0):
        self.randomness = randomness % FIELD_MODULUS
        self.stack = list(stack)
        # Number of elements on the stack, the rest of `stack` being zero padding
        self.depth = depth
        self.mode = ParseMode.IDLE
        self.remaining = 0
        self.data_length_acc = 0
        self.num_data_length_acc_constant = 0
        self.pk_rlc_acc = 0
        self.num_checksig_opcodes = 0

    @property
    def num_data_bytes_remaining(self) -> int:
        return self.remaining if self.mode == ParseMode.PENDING_FIXED_PUSH else 0

    @property
    def num_data_length_bytes_remaining(self) -> int:
        return self.remaining if self.mode == ParseMode.PENDING_LENGTH_FIELD else 0

    def update(self, byte: int, position: int) -> None:
        """Consume `byte`, found at `position` in the script."""
        match self.mode:
            case ParseMode.IDLE:
                self._execute(byte, position)
            case ParseMode.PENDING_FIXED_PUSH:
                self.stack[0] = (byte + self.randomness * self.stack[0]) % FIELD_MODULUS
                self.remaining -= 1
                if self.remaining == 0:
                    self.mode = ParseMode.IDLE
            case ParseMode.PENDING_LENGTH_FIELD:
                self.data_length_acc += byte * self.num_data_length_acc_constant
                self.num_data_length_acc_constant *= 256
                self.remaining -= 1
                if self.remaining == 0:
                    if self.data_length_acc == 0:
                        msg = f"OP_PUSHDATA with a zero length field ending at position {position}"
                        raise MalformedScriptError(msg)
                    self.mode = ParseMode.PENDING_FIXED_PUSH
                    self.remaining = self.data_length_acc

    def _push(self, value: int, position: int) -> None:
        if self.depth == MAX_STACK_DEPTH:
            msg = f"Stack overflow at position {position}: "
            msg += f"the stack holds at most {MAX_STACK_DEPTH} elements"
            raise MalformedScriptError(msg)
        self.depth += 1
        self.stack = [value % FIELD_MODULUS] + self.stack[:-1]

    def _execute(self, opcode: int, position: int) -> None:
        if not opcode_enabled(opcode):
            msg = f"Unsupported opcode {hex(opcode)} at position {position}"
            raise MalformedScriptError(msg)

        if opcode == OP_0:
            self._push(EMPTY_ARRAY_REPRESENTATION, position)
        elif op1_to_op16_indicator(opcode):
            self._push(opcode - OP_RESERVED, position)
        elif push1_to_push75_indicator(opcode):
            self._push(0, position)
            self.mode = ParseMode.PENDING_FIXED_PUSH
            self.remaining = opcode
        elif opcode in PUSHDATA_LENGTH_BYTES:
            self._push(0, position)
            self.mode = ParseMode.PENDING_LENGTH_FIELD
            self.remaining = PUSHDATA_LENGTH_BYTES[opcode]
            self.data_length_acc = 0
            self.num_data_length_acc_constant = 1
        elif opcode == OP_CHECKSIG:
            if self.depth < 2:  # noqa: PLR2004
                msg = f"OP_CHECKSIG at position {position} needs two stack elements: got {self.depth}"
                raise MalformedScriptError(msg)
            public_key, flag = self.stack[0], self.stack[1]
            if flag not in (0, 1):
                msg = f"OP_CHECKSIG at position {position} expects a signature flag in {{0, 1}}: got {flag}"
                raise MalformedScriptError(msg)
            if flag == 1:
                self.pk_rlc_acc = (self.randomness * self.pk_rlc_acc + public_key) % FIELD_MODULUS
                self.num_checksig_opcodes += 1
            self.stack = [flag] + self.stack[2:] + [0]
            self.depth -= 1
        # OP_NOP leaves the state untouched

    def row(self, opcode: int, script_rlc_acc: int, num_script_bytes_remaining: int) -> TraceRow:
        return TraceRow(
            opcode=opcode,
            script_rlc_acc=script_rlc_acc,
            num_script_bytes_remaining=num_script_bytes_remaining,
            stack=tuple(self.stack),
            num_data_bytes_remaining=self.num_data_bytes_remaining,
            num_data_length_bytes_remaining=self.num_data_length_bytes_remaining,
            data_length_acc=self.data_length_acc,
            num_data_length_acc_constant=self.num_data_length_acc_constant,
            pk_rlc_acc=self.pk_rlc_acc,
            num_checksig_opcodes=self.num_checksig_opcodes,
        )


def interpret(script: bytes | Script, randomness: int, initial_stack: list[int] | None = None) -> Trace:
    """Execute `script` and return the trace of the execution region.

    Args:
        script (bytes | Script): The `scriptPubKey` to execute.
        randomness (int): The randomness used in every RLC.
        initial_stack (list[int] | None): The stack before the execution, top first. Padded with zeros to
            `MAX_STACK_DEPTH` elements.

    Returns:
        The trace of the execution, with `MAX_SCRIPT_PUBKEY_SIZE + 2` rows.

    Raises:
        ValueError: If the script or the initial stack are too large.
        MalformedScriptError: If the script contains an unsupported opcode, a push running past the end of the
            script, an `OP_PUSHDATA` with a zero length, a push onto a full stack of `MAX_STACK_DEPTH` elements,
            or an `OP_CHECKSIG` with fewer than two stack elements or a non-boolean signature flag.

    Notes:
        A script leaving a falsy value on top of the stack is executed successfully: rejecting it is the job of
        the final constraints of the execution region.
    """
    script = to_script_bytes(script)
    if len(script) > MAX_SCRIPT_PUBKEY_SIZE:
        msg = f"The script has {len(script)} bytes, "
        msg += f"the maximum is {MAX_SCRIPT_PUBKEY_SIZE}"
        raise ValueError(msg)

    randomness %= FIELD_MODULUS
    state = ScriptPubkeyParseState(randomness, pad_stack(initial_stack), len(initial_stack or []))

    # suffix_rlcs[i] is the RLC of script[i:]
    suffix_rlcs = [0] * (len(script) + 1)
    for i in range(len(script) - 1, -1, -1):
        suffix_rlcs[i] = (script[i] + randomness * suffix_rlcs[i + 1]) % FIELD_MODULUS

    trace = Trace(script=script, randomness=randomness)
    trace.rows.append(state.row(OP_0, suffix_rlcs[0], len(script)))

    for position, byte in enumerate(script):
        state.update(byte, position)
        trace.rows.append(state.row(byte, suffix_rlcs[position + 1], len(script) - position - 1))

    if state.mode != ParseMode.IDLE:
        msg = f"The script ends with {state.remaining} bytes still to read "
        msg += f"({state.mode.value})"
        raise MalformedScriptError(msg)

    padding_row = state.row(OP_NOP, 0, 0)
    trace.rows.extend([padding_row] * (MAX_SCRIPT_PUBKEY_SIZE - len(script) + 1))
    return trace

