"""Assignment of secp256k1 points as limbs of `BIT_LEN_LIMB` bits."""

from dataclasses import dataclass

from src.bitcoinvm.constants import BIT_LEN_LIMB, COORDINATE_BYTES, NUMBER_OF_LIMBS
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem
from src.bitcoinvm.constraint_system.expression import Column
from src.bitcoinvm.constraint_system.layouter import AssignedCell, Region


def integer_to_limbs(n: int) -> list[int]:
    """Split a coordinate into `NUMBER_OF_LIMBS` limbs of `BIT_LEN_LIMB` bits, least significant first."""
    if not 0 <= n < 2 ** (8 * COORDINATE_BYTES):
        msg = f"The coordinate {n} does not fit in {COORDINATE_BYTES} bytes"
        raise ValueError(msg)
    mask = (1 << BIT_LEN_LIMB) - 1
    return [(n >> (BIT_LEN_LIMB * i)) & mask for i in range(NUMBER_OF_LIMBS)]


def limb_bit_lengths() -> list[int]:
    """Return the number of bits of each limb of a coordinate: [72, 72, 72, 40]."""
    total_bits = 8 * COORDINATE_BYTES
    return [min(BIT_LEN_LIMB, total_bits - BIT_LEN_LIMB * i) for i in range(NUMBER_OF_LIMBS)]


@dataclass
class AssignedPoint:
    """A point whose coordinates are assigned as limbs.

    Attributes:
        x (list[AssignedCell]): The limbs of the x coordinate, least significant first.
        y (list[AssignedCell]): The limbs of the y coordinate, least significant first.
    """

    x: list[AssignedCell]
    y: list[AssignedCell]


@dataclass
class EccConfig:
    x_limbs: list[Column]
    y_limbs: list[Column]


class EccChip:
    """Chip assigning points of secp256k1."""

    def __init__(self, config: EccConfig):
        self.config = config

    @staticmethod
    def configure(meta: ConstraintSystem) -> EccConfig:
        x_limbs = [meta.advice_column() for _ in range(NUMBER_OF_LIMBS)]
        y_limbs = [meta.advice_column() for _ in range(NUMBER_OF_LIMBS)]
        for column in x_limbs + y_limbs:
            meta.enable_equality(column)
        return EccConfig(x_limbs, y_limbs)

    def assign_point(self, region: Region, offset: int, point: tuple[int, int]) -> AssignedPoint:
        """Assign the affine `point = (x, y)` at `offset`."""
        x, y = point
        return AssignedPoint(
            x=[
                region.assign_advice(column, offset, limb)
                for column, limb in zip(self.config.x_limbs, integer_to_limbs(x))
            ],
            y=[
                region.assign_advice(column, offset, limb)
                for column, limb in zip(self.config.y_limbs, integer_to_limbs(y))
            ],
        )
