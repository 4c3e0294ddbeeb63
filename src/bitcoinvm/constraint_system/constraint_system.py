"""Declaration of columns, gates and lookup arguments."""

from dataclasses import dataclass, field
from typing import Callable

from src.bitcoinvm.constraint_system.errors import ConstraintSystemError
from src.bitcoinvm.constraint_system.expression import (
    Column,
    ColumnType,
    Expression,
    Query,
    Rotation,
    Selector,
    SelectorQuery,
    TableColumn,
)


class VirtualCells:
    """Handle through which gate and lookup builders query cells."""

    def __init__(self):
        self.queried_selectors: set[Selector] = set()

    def query_advice(self, column: Column, rotation: int = Rotation.cur) -> Expression:
        return self._query(column, ColumnType.ADVICE, rotation)

    def query_fixed(self, column: Column, rotation: int = Rotation.cur) -> Expression:
        return self._query(column, ColumnType.FIXED, rotation)

    def query_instance(self, column: Column, rotation: int = Rotation.cur) -> Expression:
        return self._query(column, ColumnType.INSTANCE, rotation)

    def query_selector(self, selector: Selector) -> Expression:
        self.queried_selectors.add(selector)
        return SelectorQuery(selector)

    @staticmethod
    def _query(column: Column, column_type: ColumnType, rotation: int) -> Expression:
        if column.column_type != column_type:
            msg = f"Cannot query {column} as a {column_type.value} column"
            raise ConstraintSystemError(msg)
        return Query(column, rotation)


@dataclass
class Gate:
    """A named set of polynomials that must vanish on every row.

    Attributes:
        name (str): The name of the gate.
        constraints (list[tuple[str, Expression]]): The named polynomials of the gate.
        selectors (set[Selector]): The selectors queried by the gate. The gate is trivially satisfied on the rows
            where all of them are off.
    """

    name: str
    constraints: list[tuple[str, Expression]]
    selectors: set[Selector]


@dataclass
class Lookup:
    """A lookup argument: on every row, the tuple of `inputs` must be a row of the `table` columns."""

    name: str
    inputs: list[Expression]
    table: list[TableColumn]


@dataclass
class ConstraintSystem:
    """The shape of a circuit: its columns, gates, lookups and the columns taking part in copy constraints."""

    num_advice_columns: int = 0
    num_fixed_columns: int = 0
    num_instance_columns: int = 0
    num_selectors: int = 0
    selectors: list[Selector] = field(default_factory=list)
    gates: list[Gate] = field(default_factory=list)
    lookups: list[Lookup] = field(default_factory=list)
    equality_columns: set[Column] = field(default_factory=set)
    table_columns: list[TableColumn] = field(default_factory=list)

    def advice_column(self) -> Column:
        column = Column(ColumnType.ADVICE, self.num_advice_columns)
        self.num_advice_columns += 1
        return column

    def fixed_column(self) -> Column:
        column = Column(ColumnType.FIXED, self.num_fixed_columns)
        self.num_fixed_columns += 1
        return column

    def instance_column(self) -> Column:
        column = Column(ColumnType.INSTANCE, self.num_instance_columns)
        self.num_instance_columns += 1
        self.enable_equality(column)
        return column

    def selector(self) -> Selector:
        selector = Selector(self.num_selectors, simple=True)
        self.num_selectors += 1
        self.selectors.append(selector)
        return selector

    def complex_selector(self) -> Selector:
        selector = Selector(self.num_selectors, simple=False)
        self.num_selectors += 1
        self.selectors.append(selector)
        return selector

    def lookup_table_column(self) -> TableColumn:
        table_column = TableColumn(self.fixed_column())
        self.table_columns.append(table_column)
        return table_column

    def enable_equality(self, column: Column) -> None:
        self.equality_columns.add(column)

    def create_gate(self, name: str, builder: Callable[[VirtualCells], list[tuple[str, Expression]]]) -> None:
        """Register a gate.

        Args:
            name (str): The name of the gate.
            builder (Callable[[VirtualCells], list[tuple[str, Expression]]]): Function returning the named
                polynomials of the gate. Every polynomial must be multiplied by at least one selector of the gate.

        Raises:
            ConstraintSystemError: If the gate does not query any selector, or if one of its polynomials is
                not switched off by the selectors of the gate.
        """
        meta = VirtualCells()
        constraints = builder(meta)
        if len(meta.queried_selectors) == 0:
            msg = f"Gate '{name}' does not query any selector"
            raise ConstraintSystemError(msg)
        for constraint_name, constraint in constraints:
            if len(constraint.selectors()) == 0:
                msg = f"Constraint '{constraint_name}' of gate '{name}' is not gated by a selector"
                raise ConstraintSystemError(msg)
        self.gates.append(Gate(name, constraints, meta.queried_selectors))

    def lookup(self, name: str, builder: Callable[[VirtualCells], list[tuple[Expression, TableColumn]]]) -> None:
        """Register a lookup argument.

        Args:
            name (str): The name of the lookup.
            builder (Callable[[VirtualCells], list[tuple[Expression, TableColumn]]]): Function returning the
                pairs (input expression, table column). Inputs must vanish on the rows where the lookup is off,
                and the table must contain the all-zero row.
        """
        meta = VirtualCells()
        pairs = builder(meta)
        for _, table_column in pairs:
            if table_column not in self.table_columns:
                msg = f"Lookup '{name}' refers to {table_column}, which is not a table column"
                raise ConstraintSystemError(msg)
        self.lookups.append(Lookup(name, [pair[0] for pair in pairs], [pair[1] for pair in pairs]))


class Circuit:
    """Base class of circuits.

    A circuit declares its columns and gates once in `configure`, and assigns its witness in `synthesize`.
    """

    @classmethod
    def configure(cls, meta: ConstraintSystem):
        """Declare the columns, gates and lookups of the circuit and return its configuration."""
        raise NotImplementedError

    def synthesize(self, config, layouter) -> None:
        """Assign the witness of the circuit."""
        raise NotImplementedError
