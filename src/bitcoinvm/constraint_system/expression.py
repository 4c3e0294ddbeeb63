"""Polynomial expressions over the cells of the constraint system.

An expression is a tree of constants, cell queries and the operations `+`, `-`, `*`. Queries are relative to
the row at which the expression is evaluated: a query with rotation `-1` reads the previous row, rotation `0`
the current row and rotation `1` the next row.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from src.bitcoinvm.constants import FIELD_MODULUS


class Rotation:
    """Relative row offsets used when querying a column."""

    prev = -1
    cur = 0
    next = 1


class ColumnType(Enum):
    """The three kinds of columns of a PLONKish constraint system."""

    ADVICE = "advice"
    FIXED = "fixed"
    INSTANCE = "instance"


@dataclass(frozen=True)
class Column:
    """A column of the constraint system.

    Attributes:
        column_type (ColumnType): The kind of the column.
        index (int): The index of the column among the columns of the same kind.
    """

    column_type: ColumnType
    index: int

    def __repr__(self) -> str:
        return f"{self.column_type.value}[{self.index}]"


@dataclass(frozen=True)
class Selector:
    """A selector, i.e., a fixed column taking values in {0, 1} that switches gates on and off.

    Attributes:
        index (int): The index of the selector.
        simple (bool): Whether the selector is a simple selector. Complex selectors may also be used in lookups.
    """

    index: int
    simple: bool = True

    def __repr__(self) -> str:
        return f"selector[{self.index}]"


@dataclass(frozen=True)
class TableColumn:
    """A fixed column holding the rows of a lookup table."""

    column: Column

    def __repr__(self) -> str:
        return f"table[{self.column.index}]"


class CellReader(Protocol):
    """Read access to the assigned values, as needed to evaluate expressions."""

    def value(self, column: Column, row: int) -> int: ...

    def selector_value(self, selector: Selector, row: int) -> int: ...


class Expression:
    """Base class of the expression tree."""

    def evaluate(self, reader: CellReader, row: int) -> int:
        """Evaluate the expression at `row`.

        Args:
            reader (CellReader): Access to the assigned values.
            row (int): The row at which the expression is evaluated.

        Returns:
            The value of the expression, reduced modulo `FIELD_MODULUS`.
        """
        raise NotImplementedError

    def selectors(self) -> set[Selector]:
        """Return the selectors queried by the expression."""
        return set()

    def __add__(self, other: Union["Expression", int]) -> "Expression":
        return Sum(self, expr(other))

    def __radd__(self, other: Union["Expression", int]) -> "Expression":
        return Sum(expr(other), self)

    def __sub__(self, other: Union["Expression", int]) -> "Expression":
        return Sum(self, Negated(expr(other)))

    def __rsub__(self, other: Union["Expression", int]) -> "Expression":
        return Sum(expr(other), Negated(self))

    def __mul__(self, other: Union["Expression", int]) -> "Expression":
        return Product(self, expr(other))

    def __rmul__(self, other: Union["Expression", int]) -> "Expression":
        return Product(expr(other), self)

    def __neg__(self) -> "Expression":
        return Negated(self)


class Constant(Expression):
    def __init__(self, value: int):
        self.value = value % FIELD_MODULUS

    def evaluate(self, reader: CellReader, row: int) -> int:
        return self.value

    def __repr__(self) -> str:
        return str(self.value)


class Query(Expression):
    """Query of the cell of `column` at `rotation` rows from the current one."""

    def __init__(self, column: Column, rotation: int = Rotation.cur):
        self.column = column
        self.rotation = rotation

    def evaluate(self, reader: CellReader, row: int) -> int:
        return reader.value(self.column, row + self.rotation)

    def __repr__(self) -> str:
        return f"{self.column}@{self.rotation}"


class SelectorQuery(Expression):
    """Query of a selector at the current row."""

    def __init__(self, selector: Selector):
        self.selector = selector

    def evaluate(self, reader: CellReader, row: int) -> int:
        return reader.selector_value(self.selector, row)

    def selectors(self) -> set[Selector]:
        return {self.selector}

    def __repr__(self) -> str:
        return repr(self.selector)


class Sum(Expression):
    def __init__(self, lhs: Expression, rhs: Expression):
        self.lhs = lhs
        self.rhs = rhs

    def evaluate(self, reader: CellReader, row: int) -> int:
        return (self.lhs.evaluate(reader, row) + self.rhs.evaluate(reader, row)) % FIELD_MODULUS

    def selectors(self) -> set[Selector]:
        return self.lhs.selectors() | self.rhs.selectors()

    def __repr__(self) -> str:
        return f"({self.lhs} + {self.rhs})"


class Product(Expression):
    def __init__(self, lhs: Expression, rhs: Expression):
        self.lhs = lhs
        self.rhs = rhs

    def evaluate(self, reader: CellReader, row: int) -> int:
        lhs = self.lhs.evaluate(reader, row)
        # Selectors are always the leftmost factors, so most products stop here
        if lhs == 0:
            return 0
        return lhs * self.rhs.evaluate(reader, row) % FIELD_MODULUS

    def selectors(self) -> set[Selector]:
        return self.lhs.selectors() | self.rhs.selectors()

    def __repr__(self) -> str:
        return f"{self.lhs} * {self.rhs}"


class Negated(Expression):
    def __init__(self, inner: Expression):
        self.inner = inner

    def evaluate(self, reader: CellReader, row: int) -> int:
        return (-self.inner.evaluate(reader, row)) % FIELD_MODULUS

    def selectors(self) -> set[Selector]:
        return self.inner.selectors()

    def __repr__(self) -> str:
        return f"-({self.inner})"


def expr(value: Union[Expression, int]) -> Expression:
    """Lift an integer to a constant expression, leaving expressions untouched."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, int):
        return Constant(value)
    msg = "Expressions can only be built from integers and expressions: "
    msg += f"got {type(value).__name__}"
    raise TypeError(msg)


def sum_expressions(expressions: list[Expression]) -> Expression:
    """Return the sum of `expressions`, or the constant zero if the list is empty."""
    out = Constant(0)
    for expression in expressions:
        out = out + expression
    return out
