"""types package.

This package provides custom types.

Modules:
    - stack_elements: The elements on the stack when collecting public keys: signature flags and pushed data.

Usage example:
    The stack [flag, pk] of a P2PK script, before the execution of `OP_CHECKSIG`:

    >>> from src.bitcoinvm.types.stack_elements import SignatureFlag, StackData
    >>>
    >>> stack = [StackData(public_key), SignatureFlag.VALID]
"""
