"""Lookup table binding the prefix of a public key to the parity of its y coordinate."""

from dataclasses import dataclass

from src.bitcoinvm.constants import (
    PREFIX_PK_COMPRESSED_EVEN_Y,
    PREFIX_PK_COMPRESSED_ODD_Y,
    PREFIX_PK_UNCOMPRESSED,
)
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem
from src.bitcoinvm.constraint_system.expression import TableColumn
from src.bitcoinvm.constraint_system.layouter import Layouter, TableLayouter


def parity_table_rows() -> list[tuple[int, int]]:
    """Return the rows `(prefix, least significant byte of y)` allowed for a public key.

    Uncompressed keys accept every byte, compressed keys with prefix 0x02 (resp. 0x03) accept the even (resp. odd)
    bytes. The row (0, 0) is matched by the disabled rows.
    """
    rows = [(PREFIX_PK_UNCOMPRESSED, byte) for byte in range(256)]
    rows += [
        (PREFIX_PK_COMPRESSED_ODD_Y if byte % 2 else PREFIX_PK_COMPRESSED_EVEN_Y, byte) for byte in range(256)
    ]
    rows.append((0, 0))
    return rows


@dataclass
class PkParityTableConfig:
    prefix: TableColumn
    parity: TableColumn


class PkParityTableChip:
    def __init__(self, config: PkParityTableConfig):
        self.config = config

    @staticmethod
    def configure(meta: ConstraintSystem) -> PkParityTableConfig:
        return PkParityTableConfig(meta.lookup_table_column(), meta.lookup_table_column())

    def load(self, layouter: Layouter) -> None:
        def assign(table: TableLayouter) -> None:
            for offset, (prefix, parity) in enumerate(parity_table_rows()):
                table.assign_cell(self.config.prefix, offset, prefix)
                table.assign_cell(self.config.parity, offset, parity)

        layouter.assign_table("Public key parity table", assign)
