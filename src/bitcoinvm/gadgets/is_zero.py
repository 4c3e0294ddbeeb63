"""Gadget proving whether a value is zero."""

from dataclasses import dataclass
from typing import Callable

from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem, VirtualCells
from src.bitcoinvm.constraint_system.expression import Column, Expression, Rotation
from src.bitcoinvm.constraint_system.layouter import AssignedCell, Region


def inv0(value: int) -> int:
    """Return the inverse of `value` in the field, or 0 if `value` is 0."""
    value %= FIELD_MODULUS
    return 0 if value == 0 else pow(value, -1, FIELD_MODULUS)


@dataclass
class IsZeroConfig:
    """Configuration of the IsZero gadget.

    Attributes:
        value (Callable[[VirtualCells, int], Expression]): The value checked by the gadget, at a given rotation.
        value_inv (Column): The advice column witnessing the inverse of the value.
    """

    value: Callable[[VirtualCells, int], Expression]
    value_inv: Column

    def expr(self, meta: VirtualCells, rotation: int = Rotation.cur) -> Expression:
        """Return the expression equal to 1 if the value at `rotation` is zero, and to 0 otherwise.

        The expression is only sound on rows where the gadget is enabled.
        """
        return 1 - self.value(meta, rotation) * meta.query_advice(self.value_inv, rotation)


class IsZeroChip:
    """Chip witnessing `value_inv` such that `1 - value * value_inv` is the zero indicator of `value`."""

    def __init__(self, config: IsZeroConfig):
        self.config = config

    @staticmethod
    def configure(
        meta: ConstraintSystem,
        q_enable: Callable[[VirtualCells], Expression],
        value: Callable[[VirtualCells, int], Expression],
        value_inv: Column,
        name: str = "is_zero",
    ) -> IsZeroConfig:
        """Add the gate `q_enable * value * (1 - value * value_inv) = 0` to `meta`.

        If `value` is not zero, the gate forces `value_inv` to be its inverse, so that the indicator is 0. If
        `value` is zero, the indicator is 1 regardless of `value_inv`.

        Args:
            meta (ConstraintSystem): The constraint system.
            q_enable (Callable[[VirtualCells], Expression]): The rows on which the gadget is enabled.
            value (Callable[[VirtualCells, int], Expression]): The value to check, at a given rotation.
            value_inv (Column): Advice column holding the inverse of the value.
            name (str): The name of the gate.

        Returns:
            The configuration of the gadget.
        """
        config = IsZeroConfig(value, value_inv)

        def gate(vc: VirtualCells) -> list[tuple[str, Expression]]:
            return [
                (
                    "value * (1 - value * value_inv)",
                    q_enable(vc) * value(vc, Rotation.cur) * config.expr(vc),
                )
            ]

        meta.create_gate(name, gate)
        return config

    def assign(self, region: Region, offset: int, value: int) -> AssignedCell:
        """Witness the inverse of `value` at `offset`."""
        return region.assign_advice(self.config.value_inv, offset, inv0(value))
