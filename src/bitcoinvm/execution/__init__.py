"""execution package.

This package provides the execution region of the circuit, which unrolls the execution of a `scriptPubKey`.

Modules:
    - opcode_table: The opcode properties table and the indicators of the supported opcode classes.
    - script_parser: The interpreter generating the trace of the execution region.
    - execution: The ExecutionChip, constraining the trace row by row.

Usage example:
    Execute a P2PK script for a signature that verifies:

    >>> from src.bitcoinvm.execution.script_parser import interpret
    >>>
    >>> trace = interpret(bytes([0x21]) + public_key + bytes([0xAC]), randomness=0x1234, initial_stack=[1])
    >>> trace.final_row.num_checksig_opcodes
    1
"""
