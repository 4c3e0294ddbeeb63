"""checksig package.

This package provides the checksig region of the circuit, which verifies a signature for every public key consumed
by a successful `OP_CHECKSIG` and ties the verified keys to the public keys accumulated by the execution region.

Modules:
    - parity_table: The table binding the prefix of a public key to the parity of its y coordinate.
    - pk_parser: Collection of the public keys consumed by the successful `OP_CHECKSIG`s of a script.
    - sign_types: The SignData class, holding a signature and its public key, and the padding signature.
    - checksig: The OpCheckSigChip, verifying the signatures and recomputing the RLC of the public keys.
    - util: Random linear combinations and helper expressions.

Usage example:
    Collect the public key of a P2PK script:

    >>> from src.bitcoinvm.checksig.pk_parser import collect_public_keys
    >>> from src.bitcoinvm.types.stack_elements import SignatureFlag
    >>>
    >>> keys = collect_public_keys(bytes([0x21]) + public_key + bytes([0xAC]), [SignatureFlag.VALID])
"""
