"""Parameters of the circuit."""

from copy import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import tomllib

from src.bitcoinvm.constants import EXECUTION_ROWS


@dataclass
class CircuitParameters:
    """Parameters used to synthesize and check the circuit.

    Attributes:
        k (int): Logarithm of the number of rows of the circuit.
        randomness (Optional[int]): The randomness of the RLCs. If `None`, it is derived from the script.
    """

    k: int = 10
    randomness: Optional[int] = None

    def __post_init__(self):
        if 2**self.k < EXECUTION_ROWS:
            msg = f"The circuit needs at least {EXECUTION_ROWS} rows: "
            msg += f"k = {self.k} gives {2**self.k}"
            raise ValueError(msg)

    def with_overrides(self, **overrides):
        new_params = copy(self)
        for key, value in overrides.items():
            if hasattr(new_params, key):
                setattr(new_params, key, value)
            else:
                raise AttributeError(f"CircuitParameters has no attribute '{key}'")
        new_params.__post_init__()
        return new_params

    @classmethod
    def from_toml(cls, path: Path | str) -> "CircuitParameters":
        """Load the parameters from the `[circuit]` table of a TOML file.

        Example:
            [circuit]
            k = 11
            randomness = 4660
        """
        with Path.open(Path(path), "rb") as f:
            config = tomllib.load(f)
        return default_parameters.with_overrides(**config.get("circuit", {}))


default_parameters = CircuitParameters()
