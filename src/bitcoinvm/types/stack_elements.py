"""Classes defining the elements on the stack when collecting the public keys of a script."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class SignatureFlag(Enum):
    """The outcome of an `OP_CHECKSIG`, as known to the prover before execution.

    The flag sits below the public key on the stack. A `VALID` flag means the prover holds a signature for the
    public key, an `INVALID` flag means the `OP_CHECKSIG` is expected to fail.
    """

    INVALID = 0
    VALID = 1


@dataclass(frozen=True)
class StackData:
    """Bytes pushed on the stack by the script.

    Attributes:
        data (bytes): The pushed bytes.
    """

    data: bytes

    def __len__(self) -> int:
        return len(self.data)


StackElement = Union[SignatureFlag, StackData]
