"""util package.

Modules:
    - utility_functions: Helpers to build scripts, signature flags and the randomness of the RLCs.
    - utility_circuit_params: The CircuitParameters class, holding the size of the circuit and its randomness.
"""
