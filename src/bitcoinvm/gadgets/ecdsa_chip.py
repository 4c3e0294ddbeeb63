"""Verification of ECDSA signatures over secp256k1.

The arithmetization of the verification equation is provided by an external gadget. `EcdsaChip` exposes the
same interface: it checks the signature, assigns the public key through the `EccChip`, and fails synthesis if the
signature does not verify.
"""

import logging

from ecdsa import SECP256k1
from ecdsa.ecdsa import Public_key, Signature
from ecdsa.ellipticcurve import Point

from src.bitcoinvm.constraint_system.errors import SynthesisError
from src.bitcoinvm.constraint_system.layouter import Region
from src.bitcoinvm.gadgets.ecc_chip import AssignedPoint, EccChip

logger = logging.getLogger(__name__)


def verify_signature(signature: tuple[int, int], public_key: tuple[int, int], msg_hash: int) -> bool:
    """Check the ECDSA signature `(r, s)` of `msg_hash` against `public_key`.

    Raises:
        SynthesisError: If `public_key` is not a point of secp256k1.
    """
    x, y = public_key
    if not SECP256k1.curve.contains_point(x, y):
        msg = f"The public key ({hex(x)}, {hex(y)}) is not on secp256k1"
        raise SynthesisError(msg)
    point = Point(SECP256k1.curve, x, y, SECP256k1.order)
    return Public_key(SECP256k1.generator, point).verifies(msg_hash, Signature(*signature))


class EcdsaChip:
    """Chip verifying ECDSA signatures and exposing the verified public key as assigned limbs."""

    def __init__(self, ecc_chip: EccChip):
        self.ecc_chip = ecc_chip

    def verify(
        self,
        region: Region,
        offset: int,
        signature: tuple[int, int],
        public_key: tuple[int, int],
        msg_hash: int,
    ) -> AssignedPoint:
        """Verify `signature` against `public_key` and assign the public key at `offset`.

        Args:
            region (Region): The region in which the public key is assigned.
            offset (int): The row of the region holding the public key.
            signature (tuple[int, int]): The signature `(r, s)`.
            public_key (tuple[int, int]): The affine coordinates of the public key.
            msg_hash (int): The signed message hash.

        Returns:
            The assigned public key.

        Raises:
            SynthesisError: If the signature does not verify.
        """
        if not verify_signature(signature, public_key, msg_hash):
            msg = f"The signature {signature} does not verify against the public key {public_key}"
            raise SynthesisError(msg)
        logger.debug("Verified signature at offset %d of region '%s'", offset, region.name)
        return self.ecc_chip.assign_point(region, offset, public_key)
