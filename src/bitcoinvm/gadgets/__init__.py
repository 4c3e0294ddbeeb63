"""gadgets package.

This package provides the reusable chips the execution and checksig regions are built from.

Modules:
    - is_zero: The IsZeroChip, proving whether a value is zero and exposing the corresponding indicator.
    - range_chip: The RangeChip, decomposing values into range checked little-endian bytes.
    - ecc_chip: The EccChip, assigning secp256k1 points as limbs of 72 bits.
    - ecdsa_chip: The EcdsaChip, verifying ECDSA signatures and exposing the verified public key.
"""
