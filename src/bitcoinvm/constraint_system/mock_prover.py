"""Satisfiability checker for circuits, used in place of a proof system backend."""

import logging
from dataclasses import dataclass

from src.bitcoinvm.constraint_system.constraint_system import Circuit, ConstraintSystem
from src.bitcoinvm.constraint_system.errors import ConstraintSystemError
from src.bitcoinvm.constraint_system.expression import Column, ColumnType
from src.bitcoinvm.constraint_system.layouter import Assignment, Layouter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConstraintNotSatisfied:
    gate: str
    constraint: str
    row: int

    def __str__(self) -> str:
        return f"Constraint '{self.constraint}' of gate '{self.gate}' is not satisfied at row {self.row}"


@dataclass(frozen=True)
class LookupNotSatisfied:
    lookup: str
    row: int

    def __str__(self) -> str:
        return f"Lookup '{self.lookup}' is not satisfied at row {self.row}"


@dataclass(frozen=True)
class PermutationNotSatisfied:
    left: tuple[Column, int]
    right: tuple[Column, int]

    def __str__(self) -> str:
        msg = f"Copy constraint between {self.left[0]} at row {self.left[1]} "
        msg += f"and {self.right[0]} at row {self.right[1]} is not satisfied"
        return msg


@dataclass(frozen=True)
class InstanceNotSatisfied:
    cell: tuple[Column, int]
    instance_row: int

    def __str__(self) -> str:
        return f"Cell {self.cell[0]} at row {self.cell[1]} does not match the public input at row {self.instance_row}"


VerifyFailure = ConstraintNotSatisfied | LookupNotSatisfied | PermutationNotSatisfied | InstanceNotSatisfied


class MockProver:
    """Synthesize a circuit and check every gate, lookup and copy constraint on its assignment.

    Usage example:
        >>> prover = MockProver.run(k=10, circuit=circuit, instances=[circuit.public_inputs()])
        >>> prover.assert_satisfied()
    """

    def __init__(self, k: int, cs: ConstraintSystem, assignment: Assignment):
        self.k = k
        self.cs = cs
        self.assignment = assignment

    @classmethod
    def run(cls, k: int, circuit: Circuit, instances: list[list[int]]) -> "MockProver":
        """Configure and synthesize `circuit` over `2**k` rows.

        Args:
            k (int): Logarithm of the number of rows of the circuit.
            circuit (Circuit): The circuit to synthesize.
            instances (list[list[int]]): The public inputs, one list per instance column.

        Returns:
            The prover holding the assignment of the circuit.

        Raises:
            ConstraintSystemError: If the circuit does not fit in `2**k` rows or is inconsistent with its
                configuration.
            SynthesisError: If the witness of the circuit is inconsistent with the statement being proven.
        """
        cs = ConstraintSystem()
        config = circuit.configure(cs)
        assignment = Assignment(cs, 2**k, instances)
        circuit.synthesize(config, Layouter(assignment))
        logger.debug(
            "Synthesized %s: %d advice, %d fixed, %d instance columns, %d gates, %d lookups",
            type(circuit).__name__,
            cs.num_advice_columns,
            cs.num_fixed_columns,
            cs.num_instance_columns,
            len(cs.gates),
            len(cs.lookups),
        )
        return cls(k, cs, assignment)

    def verify(self) -> list[VerifyFailure]:
        """Return the list of the constraints not satisfied by the assignment."""
        failures: list[VerifyFailure] = []
        failures.extend(self._verify_gates())
        failures.extend(self._verify_lookups())
        failures.extend(self._verify_copies())
        for failure in failures:
            logger.warning("%s", failure)
        return failures

    def assert_satisfied(self) -> None:
        """Raise if the assignment does not satisfy the constraint system.

        Raises:
            ConstraintSystemError: Listing the constraints that are not satisfied.
        """
        failures = self.verify()
        if len(failures) != 0:
            msg = f"The circuit is not satisfied, {len(failures)} failures:\n"
            msg += "\n".join(str(failure) for failure in failures[:20])
            raise ConstraintSystemError(msg)

    def _verify_gates(self) -> list[VerifyFailure]:
        failures: list[VerifyFailure] = []
        n = self.assignment.n
        for gate in self.cs.gates:
            active_rows = [
                row
                for row in range(n)
                if any(self.assignment.selectors[selector][row] for selector in gate.selectors)
            ]
            for row in active_rows:
                for constraint_name, constraint in gate.constraints:
                    if constraint.evaluate(self.assignment, row) != 0:
                        failures.append(ConstraintNotSatisfied(gate.name, constraint_name, row))
        return failures

    def _verify_lookups(self) -> list[VerifyFailure]:
        failures: list[VerifyFailure] = []
        for lookup in self.cs.lookups:
            table_height = max(self.assignment.table_rows.get(table_column, 0) for table_column in lookup.table)
            table = {
                tuple(self.assignment.value(table_column.column, row) for table_column in lookup.table)
                for row in range(table_height)
            }
            for row in range(self.assignment.n):
                values = tuple(expression.evaluate(self.assignment, row) for expression in lookup.inputs)
                if values not in table:
                    failures.append(LookupNotSatisfied(lookup.name, row))
        return failures

    def _verify_copies(self) -> list[VerifyFailure]:
        failures: list[VerifyFailure] = []
        for left, left_row, right, right_row in self.assignment.copies:
            if self.assignment.value(left, left_row) == self.assignment.value(right, right_row):
                continue
            if right.column_type == ColumnType.INSTANCE:
                failures.append(InstanceNotSatisfied((left, left_row), right_row))
            else:
                failures.append(PermutationNotSatisfied((left, left_row), (right, right_row)))
        return failures
