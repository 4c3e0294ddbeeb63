"""constraint_system package.

This package provides a minimal PLONKish constraint system: the circuit shape (columns, selectors, gates, lookup
arguments and copy constraints), the assignment of witness values through regions, and a mock prover checking
that an assignment satisfies every constraint.

Modules:
    - expression: Polynomial expressions over rotated cell queries, evaluated over the BN254 scalar field.
    - constraint_system: The ConstraintSystem class, in which circuits declare columns, gates and lookups.
    - layouter: Regions, lookup tables and copy constraints.
    - mock_prover: The MockProver class, checking an assignment against its constraint system.
    - errors: Errors raised while synthesizing and checking circuits.

Usage example:
    Declare a gate enforcing that an advice column is boolean:

    >>> from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem
    >>>
    >>> meta = ConstraintSystem()
    >>> q_enable = meta.selector()
    >>> bit = meta.advice_column()
    >>> meta.create_gate(
    ...     "bit is boolean",
    ...     lambda vc: [
    ...         ("bit * (1 - bit)", vc.query_selector(q_enable) * vc.query_advice(bit) * (1 - vc.query_advice(bit)))
    ...     ],
    ... )
"""
