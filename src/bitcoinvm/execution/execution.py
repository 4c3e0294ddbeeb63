"""Execution region: the constraints unrolling the execution of a `scriptPubKey`.

The region has `EXECUTION_ROWS` rows, filled from the trace returned by `interpret`:
    - row 0 (`q_first`) holds the initial state,
    - rows 1..MAX_SCRIPT_PUBKEY_SIZE (`q_execution`) hold the state after each byte of the padded script,
    - the trailing row (`q_execution` and `q_final`) repeats the final state and carries the final checks.

Every transition relates a row to the previous one. Whether the byte of a row is an opcode, push data or part of a
length field is read off the counters of the previous row:
    - `num_script_bytes_remaining[prev] == 0`: the byte is padding,
    - `num_data_bytes_remaining[prev] != 0`: the byte is push data,
    - `num_data_length_bytes_remaining[prev] != 0`: the byte belongs to the length field of an `OP_PUSHDATA`,
    - otherwise the byte is an opcode, and the indicator columns (checked against the opcode table) tell which.

Public inputs (instance column):
    - row 0: the length of the script,
    - row 1: the RLC of the script,
    - row 2: the randomness.
"""

import logging
from dataclasses import dataclass

from tx_engine import Script

from src.bitcoinvm.constants import (
    EMPTY_ARRAY_REPRESENTATION,
    EXECUTION_ROWS,
    INSTANCE_RANDOMNESS_ROW,
    INSTANCE_SCRIPT_LENGTH_ROW,
    INSTANCE_SCRIPT_RLC_ROW,
    MAX_STACK_DEPTH,
    NEGATIVE_ZERO,
    OP_NOP,
    OP_RESERVED,
)
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem, VirtualCells
from src.bitcoinvm.constraint_system.expression import Column, Expression, Rotation, Selector, sum_expressions
from src.bitcoinvm.constraint_system.layouter import AssignedCell, Layouter, Region
from src.bitcoinvm.execution.opcode_table import (
    OpcodeIndicatorColumns,
    OpcodeProperties,
    OpcodeTableChip,
    OpcodeTableConfig,
)
from src.bitcoinvm.execution.script_parser import Trace, interpret
from src.bitcoinvm.gadgets.is_zero import IsZeroChip, IsZeroConfig

logger = logging.getLogger(__name__)


@dataclass
class ExecutionConfig:
    instance: Column
    randomness: Column
    q_first: Selector
    q_execution: Selector
    q_final: Selector
    opcode: Column
    indicators: OpcodeIndicatorColumns
    script_rlc_acc: Column
    num_script_bytes_remaining: Column
    stack: list[Column]
    num_data_bytes_remaining: Column
    num_data_length_bytes_remaining: Column
    data_length_acc: Column
    num_data_length_acc_constant: Column
    pk_rlc_acc: Column
    num_checksig_opcodes: Column
    script_bytes_remaining_is_zero: IsZeroConfig
    data_bytes_remaining_is_zero: IsZeroConfig
    data_length_bytes_remaining_is_zero: IsZeroConfig
    data_length_bytes_remaining_is_one: IsZeroConfig
    data_length_acc_is_zero: IsZeroConfig
    stack_top_is_falsy: IsZeroConfig
    opcode_table: OpcodeTableConfig


@dataclass
class ExecutionOutputCells:
    """Cells of the execution region shared with the rest of the circuit.

    Attributes:
        script_length (AssignedCell): The length of the script, bound to the public inputs.
        initial_script_rlc (AssignedCell): The RLC of the script, bound to the public inputs.
        randomness (AssignedCell): The randomness, bound to the public inputs.
        pk_rlc_acc (AssignedCell): The Horner fold of the public keys of the successful `OP_CHECKSIG`s.
        num_checksig_opcodes (AssignedCell): The number of successful `OP_CHECKSIG`s.
        trace (Trace): The trace the region was assigned from.
    """

    script_length: AssignedCell
    initial_script_rlc: AssignedCell
    randomness: AssignedCell
    pk_rlc_acc: AssignedCell
    num_checksig_opcodes: AssignedCell
    trace: Trace


class ExecutionChip:
    """Chip constraining the execution of a `scriptPubKey`."""

    def __init__(self, config: ExecutionConfig):
        self.config = config

    @staticmethod
    def configure(meta: ConstraintSystem) -> ExecutionConfig:  # noqa: PLR0915
        instance = meta.instance_column()
        randomness = meta.advice_column()
        q_first = meta.selector()
        q_execution = meta.complex_selector()
        q_final = meta.selector()
        opcode = meta.advice_column()
        indicators = OpcodeIndicatorColumns.configure(meta)
        script_rlc_acc = meta.advice_column()
        num_script_bytes_remaining = meta.advice_column()
        stack = [meta.advice_column() for _ in range(MAX_STACK_DEPTH)]
        num_data_bytes_remaining = meta.advice_column()
        num_data_length_bytes_remaining = meta.advice_column()
        data_length_acc = meta.advice_column()
        num_data_length_acc_constant = meta.advice_column()
        pk_rlc_acc = meta.advice_column()
        num_checksig_opcodes = meta.advice_column()

        for column in (randomness, script_rlc_acc, num_script_bytes_remaining, pk_rlc_acc, num_checksig_opcodes):
            meta.enable_equality(column)

        def q_state(vc: VirtualCells) -> Expression:
            return vc.query_selector(q_first) + vc.query_selector(q_execution)

        def column_value(column: Column):
            return lambda vc, rotation: vc.query_advice(column, rotation)

        script_bytes_remaining_is_zero = IsZeroChip.configure(
            meta, q_state, column_value(num_script_bytes_remaining), meta.advice_column(), "R is zero"
        )
        data_bytes_remaining_is_zero = IsZeroChip.configure(
            meta, q_state, column_value(num_data_bytes_remaining), meta.advice_column(), "D is zero"
        )
        data_length_bytes_remaining_is_zero = IsZeroChip.configure(
            meta, q_state, column_value(num_data_length_bytes_remaining), meta.advice_column(), "L is zero"
        )
        data_length_bytes_remaining_is_one = IsZeroChip.configure(
            meta,
            q_state,
            lambda vc, rotation: vc.query_advice(num_data_length_bytes_remaining, rotation) - 1,
            meta.advice_column(),
            "L is one",
        )
        data_length_acc_is_zero = IsZeroChip.configure(
            meta, q_state, column_value(data_length_acc), meta.advice_column(), "A is zero"
        )
        stack_top_is_falsy = IsZeroChip.configure(
            meta,
            lambda vc: vc.query_selector(q_final),
            lambda vc, rotation: vc.query_advice(stack[0], rotation)
            * (vc.query_advice(stack[0], rotation) - NEGATIVE_ZERO),
            meta.advice_column(),
            "top * (top - NEGATIVE_ZERO) is zero",
        )

        opcode_table = OpcodeTableChip.configure(meta, q_execution, opcode, indicators)

        # Expressions describing the byte of the current row, read off the counters of the previous row
        def is_real_byte(vc: VirtualCells) -> Expression:
            return 1 - script_bytes_remaining_is_zero.expr(vc, Rotation.prev)

        def is_padding(vc: VirtualCells) -> Expression:
            return script_bytes_remaining_is_zero.expr(vc, Rotation.prev)

        def is_opcode(vc: VirtualCells) -> Expression:
            return (
                is_real_byte(vc)
                * data_bytes_remaining_is_zero.expr(vc, Rotation.prev)
                * data_length_bytes_remaining_is_zero.expr(vc, Rotation.prev)
            )

        def is_data(vc: VirtualCells) -> Expression:
            return is_real_byte(vc) * (1 - data_bytes_remaining_is_zero.expr(vc, Rotation.prev))

        def is_length(vc: VirtualCells) -> Expression:
            return is_real_byte(vc) * (1 - data_length_bytes_remaining_is_zero.expr(vc, Rotation.prev))

        def cur(vc: VirtualCells, column: Column) -> Expression:
            return vc.query_advice(column, Rotation.cur)

        def prev(vc: VirtualCells, column: Column) -> Expression:
            return vc.query_advice(column, Rotation.prev)

        def stack_unchanged(vc: VirtualCells, start: int = 0) -> list[tuple[str, Expression]]:
            return [
                (f"stack[{j}] unchanged", cur(vc, stack[j]) - prev(vc, stack[j])) for j in range(start, MAX_STACK_DEPTH)
            ]

        def stack_shifted_right(vc: VirtualCells) -> list[tuple[str, Expression]]:
            return [
                (f"stack[{j}] = previous stack[{j - 1}]", cur(vc, stack[j]) - prev(vc, stack[j - 1]))
                for j in range(1, MAX_STACK_DEPTH)
            ]

        def no_pending_push(vc: VirtualCells) -> list[tuple[str, Expression]]:
            return [
                ("num_data_bytes_remaining = 0", cur(vc, num_data_bytes_remaining)),
                ("num_data_length_bytes_remaining = 0", cur(vc, num_data_length_bytes_remaining)),
            ]

        def gated(condition: Expression, constraints: list[tuple[str, Expression]]) -> list[tuple[str, Expression]]:
            return [(name, condition * constraint) for name, constraint in constraints]

        def first_row(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_first)
            constraints = [
                *no_pending_push(vc),
                ("pk_rlc_acc = 0", cur(vc, pk_rlc_acc)),
                ("num_checksig_opcodes = 0", cur(vc, num_checksig_opcodes)),
            ]
            constraints += [
                (f"stack[{j}] is boolean", cur(vc, stack[j]) * (1 - cur(vc, stack[j]))) for j in range(MAX_STACK_DEPTH)
            ]
            return gated(q, constraints)

        meta.create_gate("First row constraints", first_row)

        meta.create_gate(
            "Randomness values are the same in all rows",
            lambda vc: [
                (
                    "randomness = previous randomness",
                    vc.query_selector(q_execution) * (cur(vc, randomness) - prev(vc, randomness)),
                )
            ],
        )

        def pop_script_byte(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution)
            real = q * is_real_byte(vc)
            padding = q * is_padding(vc)
            return [
                (
                    "previous script_rlc_acc = opcode + randomness * script_rlc_acc",
                    real
                    * (
                        prev(vc, script_rlc_acc)
                        - cur(vc, opcode)
                        - cur(vc, randomness) * cur(vc, script_rlc_acc)
                    ),
                ),
                (
                    "num_script_bytes_remaining decreases by one",
                    real * (cur(vc, num_script_bytes_remaining) - prev(vc, num_script_bytes_remaining) + 1),
                ),
                ("num_script_bytes_remaining = 0 once script is read", padding * cur(vc, num_script_bytes_remaining)),
            ]

        meta.create_gate("Pop byte out of script_rlc_acc", pop_script_byte)

        # Covers the row of the last byte, where the count reaches zero, and every row after it
        meta.create_gate(
            "script_rlc_acc is zero once script is read",
            lambda vc: [
                (
                    "script_rlc_acc = 0 when num_script_bytes_remaining = 0",
                    q_state(vc) * script_bytes_remaining_is_zero.expr(vc, Rotation.cur) * cur(vc, script_rlc_acc),
                )
            ],
        )

        def padding_row(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * is_padding(vc)
            constraints = [
                *stack_unchanged(vc),
                ("opcode = OP_NOP", cur(vc, opcode) - OP_NOP),
                ("no pending push when script ends", prev(vc, num_data_bytes_remaining)),
                ("no pending length field when script ends", prev(vc, num_data_length_bytes_remaining)),
                *no_pending_push(vc),
            ]
            return gated(q, constraints)

        meta.create_gate("Stack state unchanged once script is read", padding_row)

        meta.create_gate(
            "Push counters are mutually exclusive",
            lambda vc: [
                (
                    "num_data_bytes_remaining * num_data_length_bytes_remaining = 0",
                    q_state(vc) * cur(vc, num_data_bytes_remaining) * cur(vc, num_data_length_bytes_remaining),
                )
            ],
        )

        meta.create_gate(
            "Only supported opcodes allowed",
            lambda vc: [
                (
                    "opcode is enabled",
                    vc.query_selector(q_execution) * is_opcode(vc) * (1 - cur(vc, indicators.enabled)),
                )
            ],
        )

        def op_0(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * cur(vc, indicators.op0) * is_opcode(vc)
            constraints = [
                ("stack[0] = EMPTY_ARRAY_REPRESENTATION", cur(vc, stack[0]) - EMPTY_ARRAY_REPRESENTATION),
                *stack_shifted_right(vc),
                *no_pending_push(vc),
            ]
            return gated(q, constraints)

        meta.create_gate("OP_0", op_0)

        def op_1_to_op_16(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * cur(vc, indicators.op1_to_op16) * is_opcode(vc)
            constraints = [
                ("stack[0] = opcode - OP_RESERVED", cur(vc, stack[0]) - (cur(vc, opcode) - OP_RESERVED)),
                *stack_shifted_right(vc),
                *no_pending_push(vc),
            ]
            return gated(q, constraints)

        meta.create_gate("OP_1 to OP_16", op_1_to_op_16)

        def push_1_to_push_75(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * cur(vc, indicators.push1_to_push75) * is_opcode(vc)
            constraints = [
                ("stack[0] = 0", cur(vc, stack[0])),
                *stack_shifted_right(vc),
                ("num_data_bytes_remaining = opcode", cur(vc, num_data_bytes_remaining) - cur(vc, opcode)),
                ("num_data_length_bytes_remaining = 0", cur(vc, num_data_length_bytes_remaining)),
            ]
            return gated(q, constraints)

        meta.create_gate("PUSH1 to PUSH75", push_1_to_push_75)

        def pushdata(vc: VirtualCells) -> list[tuple[str, Expression]]:
            pushdata1 = cur(vc, indicators.pushdata1)
            pushdata2 = cur(vc, indicators.pushdata2)
            pushdata4 = cur(vc, indicators.pushdata4)
            q = vc.query_selector(q_execution) * (pushdata1 + pushdata2 + pushdata4) * is_opcode(vc)
            constraints = [
                ("stack[0] = 0", cur(vc, stack[0])),
                *stack_shifted_right(vc),
                ("num_data_bytes_remaining = 0", cur(vc, num_data_bytes_remaining)),
                (
                    "num_data_length_bytes_remaining = 1, 2 or 4",
                    cur(vc, num_data_length_bytes_remaining) - (pushdata1 + 2 * pushdata2 + 4 * pushdata4),
                ),
                ("data_length_acc = 0", cur(vc, data_length_acc)),
                ("num_data_length_acc_constant = 1", cur(vc, num_data_length_acc_constant) - 1),
            ]
            return gated(q, constraints)

        meta.create_gate("PUSHDATA1, PUSHDATA2, PUSHDATA4", pushdata)

        def op_nop(vc: VirtualCells) -> list[tuple[str, Expression]]:
            nop = cur(vc, indicators.enabled) - sum_expressions(
                [cur(vc, indicator) for indicator in indicators.as_tuple()[1:]]
            )
            q = vc.query_selector(q_execution) * nop * is_opcode(vc)
            return gated(q, [*stack_unchanged(vc), *no_pending_push(vc)])

        meta.create_gate("OP_NOP", op_nop)

        def op_checksig(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * cur(vc, indicators.checksig) * is_opcode(vc)
            public_key = prev(vc, stack[0])
            flag = prev(vc, stack[1])
            r = cur(vc, randomness)
            constraints = [
                ("signature flag is boolean", flag * (1 - flag)),
                ("stack[0] = signature flag", cur(vc, stack[0]) - flag),
            ]
            constraints += [
                (f"stack[{j}] = previous stack[{j + 1}]", cur(vc, stack[j]) - prev(vc, stack[j + 1]))
                for j in range(1, MAX_STACK_DEPTH - 1)
            ]
            constraints += [
                ("bottom of the stack is zeroed", cur(vc, stack[MAX_STACK_DEPTH - 1])),
                (
                    "pk_rlc_acc folds the public key if the signature is valid",
                    cur(vc, pk_rlc_acc)
                    - prev(vc, pk_rlc_acc)
                    - flag * (r * prev(vc, pk_rlc_acc) + public_key - prev(vc, pk_rlc_acc)),
                ),
                (
                    "num_checksig_opcodes increases if the signature is valid",
                    cur(vc, num_checksig_opcodes) - prev(vc, num_checksig_opcodes) - flag,
                ),
                *no_pending_push(vc),
            ]
            return gated(q, constraints)

        meta.create_gate("OP_CHECKSIG", op_checksig)

        def data_byte(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * is_data(vc)
            constraints = [
                (
                    "stack[0] = opcode + randomness * previous stack[0]",
                    cur(vc, stack[0]) - cur(vc, opcode) - cur(vc, randomness) * prev(vc, stack[0]),
                ),
                *stack_unchanged(vc, start=1),
                (
                    "num_data_bytes_remaining decreases by one",
                    cur(vc, num_data_bytes_remaining) - prev(vc, num_data_bytes_remaining) + 1,
                ),
                ("num_data_length_bytes_remaining = 0", cur(vc, num_data_length_bytes_remaining)),
            ]
            return gated(q, constraints)

        meta.create_gate("Accumulate data byte in stack top", data_byte)

        def length_byte(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * is_length(vc)
            is_last = data_length_bytes_remaining_is_one.expr(vc, Rotation.prev)
            constraints = [
                *stack_unchanged(vc),
                (
                    "data_length_acc = previous data_length_acc + opcode * previous num_data_length_acc_constant",
                    cur(vc, data_length_acc)
                    - prev(vc, data_length_acc)
                    - cur(vc, opcode) * prev(vc, num_data_length_acc_constant),
                ),
                (
                    "num_data_length_acc_constant = 256 * previous num_data_length_acc_constant",
                    cur(vc, num_data_length_acc_constant) - 256 * prev(vc, num_data_length_acc_constant),
                ),
                (
                    "num_data_length_bytes_remaining decreases by one",
                    cur(vc, num_data_length_bytes_remaining) - prev(vc, num_data_length_bytes_remaining) + 1,
                ),
                (
                    "num_data_bytes_remaining = data_length_acc after the last length byte",
                    cur(vc, num_data_bytes_remaining) - is_last * cur(vc, data_length_acc),
                ),
                ("pushed data is not empty", is_last * data_length_acc_is_zero.expr(vc, Rotation.cur)),
            ]
            return gated(q, constraints)

        meta.create_gate("Accumulate data length into data_length_acc", length_byte)

        def accumulators_unchanged(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_execution) * (1 - is_opcode(vc) * cur(vc, indicators.checksig))
            constraints = [
                ("pk_rlc_acc unchanged", cur(vc, pk_rlc_acc) - prev(vc, pk_rlc_acc)),
                ("num_checksig_opcodes unchanged", cur(vc, num_checksig_opcodes) - prev(vc, num_checksig_opcodes)),
            ]
            return gated(q, constraints)

        meta.create_gate("pk_rlc_acc unchanged outside OP_CHECKSIG", accumulators_unchanged)

        meta.create_gate(
            "Stack top is truthy after execution",
            lambda vc: [
                (
                    "top != 0 and top != NEGATIVE_ZERO",
                    vc.query_selector(q_final) * stack_top_is_falsy.expr(vc, Rotation.cur),
                )
            ],
        )

        def script_consumed(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_final)
            constraints = [("previous num_script_bytes_remaining = 0", prev(vc, num_script_bytes_remaining))]
            return gated(q, [*constraints, *no_pending_push(vc)])

        meta.create_gate("Script fully consumed", script_consumed)

        return ExecutionConfig(
            instance=instance,
            randomness=randomness,
            q_first=q_first,
            q_execution=q_execution,
            q_final=q_final,
            opcode=opcode,
            indicators=indicators,
            script_rlc_acc=script_rlc_acc,
            num_script_bytes_remaining=num_script_bytes_remaining,
            stack=stack,
            num_data_bytes_remaining=num_data_bytes_remaining,
            num_data_length_bytes_remaining=num_data_length_bytes_remaining,
            data_length_acc=data_length_acc,
            num_data_length_acc_constant=num_data_length_acc_constant,
            pk_rlc_acc=pk_rlc_acc,
            num_checksig_opcodes=num_checksig_opcodes,
            script_bytes_remaining_is_zero=script_bytes_remaining_is_zero,
            data_bytes_remaining_is_zero=data_bytes_remaining_is_zero,
            data_length_bytes_remaining_is_zero=data_length_bytes_remaining_is_zero,
            data_length_bytes_remaining_is_one=data_length_bytes_remaining_is_one,
            data_length_acc_is_zero=data_length_acc_is_zero,
            stack_top_is_falsy=stack_top_is_falsy,
            opcode_table=opcode_table,
        )

    def load_opcode_table(self, layouter: Layouter) -> None:
        OpcodeTableChip(self.config.opcode_table).load(layouter)

    def assign_script_pubkey_unroll(
        self,
        layouter: Layouter,
        script_pubkey: bytes | Script,
        randomness: int,
        initial_stack: list[int] | None = None,
    ) -> ExecutionOutputCells:
        """Load the opcode table and assign the execution region of `script_pubkey`.

        Args:
            layouter (Layouter): The layouter.
            script_pubkey (bytes | Script): The script to execute.
            randomness (int): The randomness used in every RLC.
            initial_stack (list[int] | None): The stack before the execution, top first.

        Returns:
            The cells shared with the rest of the circuit.

        Raises:
            ValueError: If the script cannot be executed, see `interpret`.
        """
        trace = interpret(script_pubkey, randomness, initial_stack)
        self.load_opcode_table(layouter)
        logger.debug(
            "Executed script of %d bytes, %d successful OP_CHECKSIG",
            trace.script_length,
            trace.final_row.num_checksig_opcodes,
        )
        return layouter.assign_region("Execution", lambda region: self._assign_trace(region, trace))

    def _assign_trace(self, region: Region, trace: Trace) -> ExecutionOutputCells:
        config = self.config
        script_bytes_remaining_is_zero = IsZeroChip(config.script_bytes_remaining_is_zero)
        data_bytes_remaining_is_zero = IsZeroChip(config.data_bytes_remaining_is_zero)
        data_length_bytes_remaining_is_zero = IsZeroChip(config.data_length_bytes_remaining_is_zero)
        data_length_bytes_remaining_is_one = IsZeroChip(config.data_length_bytes_remaining_is_one)
        data_length_acc_is_zero = IsZeroChip(config.data_length_acc_is_zero)
        stack_top_is_falsy = IsZeroChip(config.stack_top_is_falsy)

        cells: dict[str, AssignedCell] = {}
        for offset, row in enumerate(trace.rows):
            if offset == 0:
                region.enable_selector(config.q_first, offset)
            else:
                region.enable_selector(config.q_execution, offset)
            if offset == EXECUTION_ROWS - 1:
                region.enable_selector(config.q_final, offset)
                stack_top_is_falsy.assign(region, offset, row.stack_top * (row.stack_top - NEGATIVE_ZERO))

            randomness = region.assign_advice(config.randomness, offset, trace.randomness)
            region.assign_advice(config.opcode, offset, row.opcode)
            for column, value in zip(config.indicators.as_tuple(), OpcodeProperties.of(row.opcode).as_tuple()):
                region.assign_advice(column, offset, value)
            script_rlc_acc = region.assign_advice(config.script_rlc_acc, offset, row.script_rlc_acc)
            script_length = region.assign_advice(
                config.num_script_bytes_remaining, offset, row.num_script_bytes_remaining
            )
            for column, value in zip(config.stack, row.stack):
                region.assign_advice(column, offset, value)
            region.assign_advice(config.num_data_bytes_remaining, offset, row.num_data_bytes_remaining)
            region.assign_advice(config.num_data_length_bytes_remaining, offset, row.num_data_length_bytes_remaining)
            region.assign_advice(config.data_length_acc, offset, row.data_length_acc)
            region.assign_advice(config.num_data_length_acc_constant, offset, row.num_data_length_acc_constant)
            pk_rlc_acc = region.assign_advice(config.pk_rlc_acc, offset, row.pk_rlc_acc)
            num_checksig_opcodes = region.assign_advice(config.num_checksig_opcodes, offset, row.num_checksig_opcodes)

            script_bytes_remaining_is_zero.assign(region, offset, row.num_script_bytes_remaining)
            data_bytes_remaining_is_zero.assign(region, offset, row.num_data_bytes_remaining)
            data_length_bytes_remaining_is_zero.assign(region, offset, row.num_data_length_bytes_remaining)
            data_length_bytes_remaining_is_one.assign(region, offset, row.num_data_length_bytes_remaining - 1)
            data_length_acc_is_zero.assign(region, offset, row.data_length_acc)

            if offset == 0:
                cells["script_length"] = script_length
                cells["initial_script_rlc"] = script_rlc_acc
                cells["randomness"] = randomness

        return ExecutionOutputCells(
            script_length=cells["script_length"],
            initial_script_rlc=cells["initial_script_rlc"],
            randomness=cells["randomness"],
            pk_rlc_acc=pk_rlc_acc,
            num_checksig_opcodes=num_checksig_opcodes,
            trace=trace,
        )

    def expose_public(self, layouter: Layouter, output: ExecutionOutputCells) -> None:
        """Bind the script length, the script RLC and the randomness to the public inputs."""
        layouter.constrain_instance(output.script_length, self.config.instance, INSTANCE_SCRIPT_LENGTH_ROW)
        layouter.constrain_instance(output.initial_script_rlc, self.config.instance, INSTANCE_SCRIPT_RLC_ROW)
        layouter.constrain_instance(output.randomness, self.config.instance, INSTANCE_RANDOMNESS_ROW)
