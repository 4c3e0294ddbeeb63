"""Assignment of witness values to the cells of a constraint system.

Regions are laid out one after the other, starting at row 0. Lookup tables live in dedicated fixed columns and
are always assigned starting at row 0.
"""

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem
from src.bitcoinvm.constraint_system.errors import ConstraintSystemError
from src.bitcoinvm.constraint_system.expression import Column, ColumnType, Selector, TableColumn

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AssignedCell:
    """A cell holding a witness value.

    Attributes:
        column (Column): The column of the cell.
        row (int): The absolute row of the cell.
        value (int): The value assigned to the cell.
    """

    column: Column
    row: int
    value: int


class Assignment:
    """Values of every column of a circuit with `n` rows, plus the copy constraints between them."""

    def __init__(self, cs: ConstraintSystem, n: int, instances: list[list[int]]):
        if len(instances) != cs.num_instance_columns:
            msg = f"Expected {cs.num_instance_columns} instance columns, "
            msg += f"got {len(instances)}"
            raise ConstraintSystemError(msg)
        self.cs = cs
        self.n = n
        self.columns: dict[Column, list[int]] = {}
        for index in range(cs.num_advice_columns):
            self.columns[Column(ColumnType.ADVICE, index)] = [0] * n
        for index in range(cs.num_fixed_columns):
            self.columns[Column(ColumnType.FIXED, index)] = [0] * n
        for index, values in enumerate(instances):
            if len(values) > n:
                msg = f"Instance column {index} has {len(values)} values, "
                msg += f"but the circuit only has {n} rows"
                raise ConstraintSystemError(msg)
            self.columns[Column(ColumnType.INSTANCE, index)] = [v % FIELD_MODULUS for v in values] + [0] * (
                n - len(values)
            )
        self.selectors: dict[Selector, list[int]] = {selector: [0] * n for selector in cs.selectors}
        self.table_rows: dict[TableColumn, int] = {}
        self.copies: list[tuple[Column, int, Column, int]] = []

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.n:
            msg = f"Row {row} is out of range: the circuit has {self.n} rows"
            raise ConstraintSystemError(msg)

    def assign(self, column: Column, row: int, value: int) -> None:
        self._check_row(row)
        if column not in self.columns or column.column_type == ColumnType.INSTANCE:
            msg = f"Cannot assign to {column}"
            raise ConstraintSystemError(msg)
        self.columns[column][row] = value % FIELD_MODULUS

    def enable_selector(self, selector: Selector, row: int) -> None:
        self._check_row(row)
        self.selectors[selector][row] = 1

    def copy(self, left: Column, left_row: int, right: Column, right_row: int) -> None:
        for column in (left, right):
            if column not in self.cs.equality_columns:
                msg = f"Equality is not enabled on {column}"
                raise ConstraintSystemError(msg)
        self._check_row(left_row)
        self._check_row(right_row)
        self.copies.append((left, left_row, right, right_row))

    def value(self, column: Column, row: int) -> int:
        """Return the value of the cell, rows outside the circuit read as zero."""
        if 0 <= row < self.n:
            return self.columns[column][row]
        return 0

    def selector_value(self, selector: Selector, row: int) -> int:
        return self.selectors[selector][row]


class Region:
    """A set of rows assigned together, addressed with offsets relative to the first row of the region."""

    def __init__(self, name: str, assignment: Assignment, start: int):
        self.name = name
        self.assignment = assignment
        self.start = start
        self.height = 0

    def _track(self, offset: int) -> int:
        if offset < 0:
            msg = f"Negative offset {offset} in region '{self.name}'"
            raise ConstraintSystemError(msg)
        self.height = max(self.height, offset + 1)
        return self.start + offset

    def assign_advice(self, column: Column, offset: int, value: int) -> AssignedCell:
        if column.column_type != ColumnType.ADVICE:
            msg = f"{column} is not an advice column"
            raise ConstraintSystemError(msg)
        row = self._track(offset)
        self.assignment.assign(column, row, value)
        return AssignedCell(column, row, value % FIELD_MODULUS)

    def assign_fixed(self, column: Column, offset: int, value: int) -> AssignedCell:
        if column.column_type != ColumnType.FIXED:
            msg = f"{column} is not a fixed column"
            raise ConstraintSystemError(msg)
        row = self._track(offset)
        self.assignment.assign(column, row, value)
        return AssignedCell(column, row, value % FIELD_MODULUS)

    def enable_selector(self, selector: Selector, offset: int) -> None:
        self.assignment.enable_selector(selector, self._track(offset))

    def copy_advice(self, cell: AssignedCell, column: Column, offset: int) -> AssignedCell:
        """Assign the value of `cell` to `column` at `offset` and constrain the two cells to be equal."""
        copied = self.assign_advice(column, offset, cell.value)
        self.constrain_equal(cell, copied)
        return copied

    def constrain_equal(self, left: AssignedCell, right: AssignedCell) -> None:
        self.assignment.copy(left.column, left.row, right.column, right.row)


class TableLayouter:
    """Assigns the rows of a lookup table."""

    def __init__(self, name: str, assignment: Assignment):
        self.name = name
        self.assignment = assignment
        self.assigned: set[TableColumn] = set()

    def assign_cell(self, table_column: TableColumn, offset: int, value: int) -> None:
        self.assignment.assign(table_column.column, offset, value)
        rows = self.assignment.table_rows.get(table_column, 0)
        self.assignment.table_rows[table_column] = max(rows, offset + 1)
        self.assigned.add(table_column)


class Layouter:
    """Places regions one after the other."""

    def __init__(self, assignment: Assignment):
        self.assignment = assignment
        self.next_row = 0

    def assign_region(self, name: str, assignment: Callable[[Region], T]) -> T:
        """Assign a region starting at the first free row.

        Args:
            name (str): The name of the region.
            assignment (Callable[[Region], T]): Function assigning the cells of the region.

        Returns:
            The value returned by `assignment`.
        """
        region = Region(name, self.assignment, self.next_row)
        out = assignment(region)
        self.next_row += region.height
        logger.debug("Region '%s' assigned at rows [%d, %d)", name, region.start, self.next_row)
        return out

    def assign_table(self, name: str, assignment: Callable[[TableLayouter], None]) -> None:
        """Assign the rows of a lookup table."""
        table = TableLayouter(name, self.assignment)
        assignment(table)
        logger.debug("Table '%s' assigned to %d columns", name, len(table.assigned))

    def constrain_instance(self, cell: AssignedCell, column: Column, row: int) -> None:
        """Constrain `cell` to be equal to the public input at `row` of the instance `column`."""
        if column.column_type != ColumnType.INSTANCE:
            msg = f"{column} is not an instance column"
            raise ConstraintSystemError(msg)
        self.assignment.copy(cell.column, cell.row, column, row)

    def constrain_equal(self, left: AssignedCell, right: AssignedCell) -> None:
        """Constrain two cells, possibly from different regions, to be equal."""
        self.assignment.copy(left.column, left.row, right.column, right.row)
