"""Lookup table classifying the 256 byte values as opcodes."""

from dataclasses import dataclass

from src.bitcoinvm.constants import (
    OP_0,
    OP_1,
    OP_1NEGATE,
    OP_16,
    OP_CHECKSIG,
    OP_NOP,
    OP_PUSH_NEXT1,
    OP_PUSH_NEXT75,
    OP_PUSHDATA1,
    OP_PUSHDATA2,
    OP_PUSHDATA4,
    OP_RESERVED,
)
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem, VirtualCells
from src.bitcoinvm.constraint_system.expression import Column, Expression, Selector, TableColumn
from src.bitcoinvm.constraint_system.layouter import Layouter, TableLayouter


def opcode_enabled(opcode: int) -> bool:
    """Return whether `opcode` is supported by the interpreter."""
    return (opcode <= OP_NOP and opcode not in (OP_1NEGATE, OP_RESERVED)) or opcode == OP_CHECKSIG


def op0_indicator(opcode: int) -> bool:
    return opcode == OP_0


def op1_to_op16_indicator(opcode: int) -> bool:
    return OP_1 <= opcode <= OP_16


def push1_to_push75_indicator(opcode: int) -> bool:
    return OP_PUSH_NEXT1 <= opcode <= OP_PUSH_NEXT75


def pushdata1_indicator(opcode: int) -> bool:
    return opcode == OP_PUSHDATA1


def pushdata2_indicator(opcode: int) -> bool:
    return opcode == OP_PUSHDATA2


def pushdata4_indicator(opcode: int) -> bool:
    return opcode == OP_PUSHDATA4


def checksig_indicator(opcode: int) -> bool:
    return opcode == OP_CHECKSIG


def nop_indicator(opcode: int) -> bool:
    return opcode == OP_NOP


CLASS_INDICATORS = (
    op0_indicator,
    op1_to_op16_indicator,
    push1_to_push75_indicator,
    pushdata1_indicator,
    pushdata2_indicator,
    pushdata4_indicator,
    checksig_indicator,
)


@dataclass(frozen=True)
class OpcodeProperties:
    """The indicators of a byte value, in the order of the columns of the opcode table."""

    enabled: int
    op0: int
    op1_to_op16: int
    push1_to_push75: int
    pushdata1: int
    pushdata2: int
    pushdata4: int
    checksig: int

    @classmethod
    def of(cls, opcode: int) -> "OpcodeProperties":
        if not 0 <= opcode < 256:
            msg = f"Opcodes are bytes: got {opcode}"
            raise ValueError(msg)
        return cls(int(opcode_enabled(opcode)), *(int(indicator(opcode)) for indicator in CLASS_INDICATORS))

    def as_tuple(self) -> tuple[int, ...]:
        return (
            self.enabled,
            self.op0,
            self.op1_to_op16,
            self.push1_to_push75,
            self.pushdata1,
            self.pushdata2,
            self.pushdata4,
            self.checksig,
        )


@dataclass
class OpcodeIndicatorColumns:
    """Advice columns holding the properties of the opcode of each row."""

    enabled: Column
    op0: Column
    op1_to_op16: Column
    push1_to_push75: Column
    pushdata1: Column
    pushdata2: Column
    pushdata4: Column
    checksig: Column

    @classmethod
    def configure(cls, meta: ConstraintSystem) -> "OpcodeIndicatorColumns":
        return cls(*(meta.advice_column() for _ in range(8)))

    def as_tuple(self) -> tuple[Column, ...]:
        return (
            self.enabled,
            self.op0,
            self.op1_to_op16,
            self.push1_to_push75,
            self.pushdata1,
            self.pushdata2,
            self.pushdata4,
            self.checksig,
        )


@dataclass
class OpcodeTableConfig:
    """Columns of the opcode table: `q_execution`, `opcode` and the eight indicators."""

    q_execution: TableColumn
    opcode: TableColumn
    indicators: tuple[TableColumn, ...]


class OpcodeTableChip:
    """Chip constraining the indicator columns of each executed row to the properties of its opcode.

    The table holds one row `(1, opcode, enabled, op0, op1_to_op16, push1_to_push75, pushdata1, pushdata2,
    pushdata4, checksig)` for each byte value, plus the all-zero row matched by the rows where `q_execution` is
    off.
    """

    def __init__(self, config: OpcodeTableConfig):
        self.config = config

    @staticmethod
    def configure(
        meta: ConstraintSystem, q_execution: Selector, opcode: Column, indicators: OpcodeIndicatorColumns
    ) -> OpcodeTableConfig:
        config = OpcodeTableConfig(
            q_execution=meta.lookup_table_column(),
            opcode=meta.lookup_table_column(),
            indicators=tuple(meta.lookup_table_column() for _ in range(8)),
        )

        def lookup(vc: VirtualCells) -> list[tuple[Expression, TableColumn]]:
            q = vc.query_selector(q_execution)
            pairs = [(q, config.q_execution), (q * vc.query_advice(opcode), config.opcode)]
            for column, table_column in zip(indicators.as_tuple(), config.indicators):
                pairs.append((q * vc.query_advice(column), table_column))
            return pairs

        meta.lookup("Opcode properties table", lookup)
        return config

    def load(self, layouter: Layouter) -> None:
        def assign(table: TableLayouter) -> None:
            for opcode in range(256):
                table.assign_cell(self.config.q_execution, opcode, 1)
                table.assign_cell(self.config.opcode, opcode, opcode)
                for table_column, value in zip(self.config.indicators, OpcodeProperties.of(opcode).as_tuple()):
                    table.assign_cell(table_column, opcode, value)
            # Row matched when q_execution is off
            table.assign_cell(self.config.q_execution, 256, 0)
            table.assign_cell(self.config.opcode, 256, 0)
            for table_column in self.config.indicators:
                table.assign_cell(table_column, 256, 0)

        layouter.assign_table("Opcode properties table", assign)
