"""Chip decomposing values into range checked little-endian bytes."""

from dataclasses import dataclass

from src.bitcoinvm.constants import BIT_LEN_LIMB
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem, VirtualCells
from src.bitcoinvm.constraint_system.expression import Column, Expression, Selector, TableColumn, expr
from src.bitcoinvm.constraint_system.layouter import AssignedCell, Layouter, Region, TableLayouter

MAX_DECOMPOSITION_BYTES = BIT_LEN_LIMB // 8


@dataclass
class RangeConfig:
    """Configuration of the range chip.

    Attributes:
        q_range (Selector): Enables the decomposition on a row.
        num_bytes (Column): Fixed column holding the number of bytes of the decomposition on the row.
        value (Column): The value being decomposed.
        bytes (list[Column]): The little-endian bytes of the value.
        byte_table (TableColumn): The table of the values 0..255.
    """

    q_range: Selector
    num_bytes: Column
    value: Column
    bytes: list[Column]
    byte_table: TableColumn


class RangeChip:
    """Decomposes values of at most `BIT_LEN_LIMB` bits into bytes, each byte checked against a byte table."""

    def __init__(self, config: RangeConfig):
        self.config = config

    @staticmethod
    def configure(meta: ConstraintSystem) -> RangeConfig:
        q_range = meta.complex_selector()
        num_bytes = meta.fixed_column()
        value = meta.advice_column()
        meta.enable_equality(value)
        byte_columns = []
        for _ in range(MAX_DECOMPOSITION_BYTES):
            column = meta.advice_column()
            meta.enable_equality(column)
            byte_columns.append(column)
        byte_table = meta.lookup_table_column()

        def gate(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_range)
            n = vc.query_fixed(num_bytes)
            recomposed = expr(0)
            for k, column in enumerate(byte_columns):
                recomposed = recomposed + vc.query_advice(column) * (256**k)
            constraints = [("value = sum(byte_k * 256^k)", q * (vc.query_advice(value) - recomposed))]
            # byte_k must vanish when k >= num_bytes, i.e., when num_bytes is not in {k+1, ..., 9}
            for k in range(1, MAX_DECOMPOSITION_BYTES):
                outside = expr(1)
                for m in range(k + 1, MAX_DECOMPOSITION_BYTES + 1):
                    outside = outside * (n - m)
                constraints.append((f"byte_{k} = 0 beyond num_bytes", q * outside * vc.query_advice(byte_columns[k])))
            return constraints

        meta.create_gate("Byte decomposition", gate)

        for k, column in enumerate(byte_columns):
            meta.lookup(
                f"Range check of byte {k}",
                lambda vc, column=column: [(vc.query_selector(q_range) * vc.query_advice(column), byte_table)],
            )

        return RangeConfig(q_range, num_bytes, value, byte_columns, byte_table)

    def load_table(self, layouter: Layouter) -> None:
        """Load the values 0..255 in the byte table."""

        def assign(table: TableLayouter) -> None:
            for byte in range(256):
                table.assign_cell(self.config.byte_table, byte, byte)

        layouter.assign_table("Byte table", assign)

    def decompose(
        self, region: Region, offset: int, value: AssignedCell, total_bits: int, byte_width: int = 8
    ) -> list[AssignedCell]:
        """Decompose `value` into `total_bits // 8` little-endian bytes.

        Args:
            region (Region): The region in which the decomposition is assigned.
            offset (int): The row of the region holding the decomposition.
            value (AssignedCell): The cell to decompose. It is copied into the chip.
            total_bits (int): The number of bits of `value`.
            byte_width (int): The width of each chunk of the decomposition. Only 8 is supported.

        Returns:
            The cells holding the bytes of `value`, least significant first.

        Raises:
            ValueError: If `byte_width` is not 8, if `total_bits` is not a positive multiple of 8 smaller than
                `BIT_LEN_LIMB`, or if `value` does not fit in `total_bits` bits.
        """
        if byte_width != 8:
            msg = f"Only byte decompositions are supported: byte_width = {byte_width}"
            raise ValueError(msg)
        if total_bits % 8 != 0 or not 0 < total_bits <= BIT_LEN_LIMB:
            msg = f"The number of bits must be a positive multiple of 8 at most {BIT_LEN_LIMB}: "
            msg += f"total_bits = {total_bits}"
            raise ValueError(msg)
        if value.value >> total_bits != 0:
            msg = f"The value {value.value} does not fit in {total_bits} bits"
            raise ValueError(msg)

        num_bytes = total_bits // 8
        region.enable_selector(self.config.q_range, offset)
        region.assign_fixed(self.config.num_bytes, offset, num_bytes)
        region.copy_advice(value, self.config.value, offset)
        byte_values = value.value.to_bytes(MAX_DECOMPOSITION_BYTES, "little")
        cells = [
            region.assign_advice(column, offset, byte) for column, byte in zip(self.config.bytes, byte_values)
        ]
        return cells[:num_bytes]
