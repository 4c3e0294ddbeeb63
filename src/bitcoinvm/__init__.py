"""bitcoinvm: A Python package arithmetizing the execution of Bitcoin `scriptPubKey`s.

The `bitcoinvm` package builds a PLONKish circuit proving that a `scriptPubKey` executes successfully: the script
is unrolled byte by byte in an execution region, and the public keys consumed by its successful `OP_CHECKSIG`s are
matched against ECDSA signatures verified in a checksig region. The statement exposes the length of the script,
its random linear combination (RLC) and the randomness as public inputs.

Usage example:
    Prove knowledge of a signature for a pay-to-public-key script:

    >>> from src.bitcoinvm.checksig.sign_types import SignData, sign
    >>> from src.bitcoinvm.circuit import BitcoinVMCircuit
    >>> from src.bitcoinvm.types.stack_elements import SignatureFlag
    >>> from src.bitcoinvm.util.utility_functions import p2pk_script
    >>>
    >>> signature, pk = sign(randomness=7, sk=42, msg_hash=1)
    >>> public_key = bytes([2 + pk[1] % 2]) + pk[0].to_bytes(32, "big")
    >>>
    >>> circuit = BitcoinVMCircuit.from_script(
    >>>     script_pubkey=p2pk_script(public_key),
    >>>     initial_stack=[SignatureFlag.VALID],
    >>>     sign_data=[SignData(signature, pk)],
    >>> )
    >>> circuit.mock_prove().assert_satisfied()

Packages:
    - constraint_system: The constraint system, the layouter and the mock prover.
    - gadgets: The IsZero, range, elliptic curve and ECDSA chips.
    - execution: The opcode table, the script interpreter and the execution region.
    - checksig: The public key collector, the parity table and the checksig region.
    - types: The elements on the stack when collecting public keys.
    - util: Utility functions and circuit parameters.
"""
