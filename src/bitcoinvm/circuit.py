"""The circuit proving knowledge of signatures for the public keys of a `scriptPubKey`.

The circuit is made of two regions:
    - the execution region unrolls the execution of the script and folds the public keys consumed by the
      successful `OP_CHECKSIG`s in an RLC accumulator,
    - the checksig region verifies a signature for each of these public keys and folds them in the same way.
The two regions are linked by copy constraints on the accumulator, the number of successful `OP_CHECKSIG`s and
the randomness. The public inputs are the length of the script, its RLC and the randomness.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tx_engine import Script

from src.bitcoinvm.checksig.checksig import CheckSigConfig, OpCheckSigChip
from src.bitcoinvm.checksig.pk_parser import PublicKeyInScript, collect_public_keys
from src.bitcoinvm.checksig.sign_types import SignData
from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.constraint_system.constraint_system import Circuit, ConstraintSystem
from src.bitcoinvm.constraint_system.layouter import Layouter
from src.bitcoinvm.constraint_system.mock_prover import MockProver
from src.bitcoinvm.execution.execution import ExecutionChip, ExecutionConfig
from src.bitcoinvm.execution.script_parser import script_rlc, to_script_bytes
from src.bitcoinvm.types.stack_elements import SignatureFlag
from src.bitcoinvm.util.utility_circuit_params import CircuitParameters, default_parameters
from src.bitcoinvm.util.utility_functions import derive_randomness, stack_values

logger = logging.getLogger(__name__)


@dataclass
class BitcoinVMConfig:
    execution: ExecutionConfig
    checksig: CheckSigConfig


class BitcoinVMCircuit(Circuit):
    """Circuit for the statement: the prover knows a signature for every public key consumed by a successful
    `OP_CHECKSIG` of the script with the given length and RLC.

    Usage example:
        >>> circuit = BitcoinVMCircuit.from_script(
        ...     script_pubkey=p2pk_script(public_key),
        ...     initial_stack=[SignatureFlag.VALID],
        ...     sign_data=[SignData(signature, pk)],
        ... )
        >>> circuit.mock_prove().assert_satisfied()
    """

    def __init__(
        self,
        script_pubkey: bytes | Script,
        randomness: int,
        initial_stack: list[int],
        sign_data: list[SignData],
        collected_keys: list[PublicKeyInScript],
    ):
        """Initialise the circuit.

        Args:
            script_pubkey (bytes | Script): The script.
            randomness (int): The randomness of the RLCs.
            initial_stack (list[int]): The stack before the execution of the script, top first. Its elements are
                signature flags, 1 for a valid signature and 0 otherwise.
            sign_data (list[SignData]): The signatures and public keys, in the order of the `OP_CHECKSIG`s.
            collected_keys (list[PublicKeyInScript]): The public keys collected from the script.
        """
        self.script_pubkey = to_script_bytes(script_pubkey)
        self.randomness = randomness % FIELD_MODULUS
        self.initial_stack = initial_stack
        self.sign_data = sign_data
        self.collected_keys = collected_keys

    @classmethod
    def from_script(
        cls,
        script_pubkey: bytes | Script,
        initial_stack: list[SignatureFlag],
        sign_data: list[SignData],
        parameters: CircuitParameters = default_parameters,
    ) -> "BitcoinVMCircuit":
        """Build the circuit for `script_pubkey`, collecting its public keys first.

        Args:
            script_pubkey (bytes | Script): The script.
            initial_stack (list[SignatureFlag]): The signature flags on the stack before the execution, top first.
            sign_data (list[SignData]): The signatures and public keys, in the order of the `OP_CHECKSIG`s.
            parameters (CircuitParameters): The parameters of the circuit. If `parameters.randomness` is `None`,
                the randomness is derived from the script.

        Returns:
            The circuit.

        Raises:
            MalformedScriptError: If the script cannot be executed.
            InvalidPublicKeyError: If a public key of the script is not a point of secp256k1.
        """
        collected_keys = collect_public_keys(script_pubkey, initial_stack)
        randomness = parameters.randomness
        if randomness is None:
            randomness = derive_randomness(script_pubkey)
        return cls(script_pubkey, randomness, stack_values(initial_stack), sign_data, collected_keys)

    @classmethod
    def configure(cls, meta: ConstraintSystem) -> BitcoinVMConfig:
        return BitcoinVMConfig(execution=ExecutionChip.configure(meta), checksig=OpCheckSigChip.configure(meta))

    def synthesize(self, config: BitcoinVMConfig, layouter: Layouter) -> None:
        execution_chip = ExecutionChip(config.execution)
        checksig_chip = OpCheckSigChip(config.checksig)

        execution = execution_chip.assign_script_pubkey_unroll(
            layouter, self.script_pubkey, self.randomness, self.initial_stack
        )
        checksig = checksig_chip.assign(layouter, self.randomness, self.sign_data, self.collected_keys)

        layouter.constrain_equal(execution.pk_rlc_acc, checksig.pk_rlc_acc)
        layouter.constrain_equal(execution.num_checksig_opcodes, checksig.num_checksig_opcodes)
        layouter.constrain_equal(execution.randomness, checksig.randomness)
        execution_chip.expose_public(layouter, execution)

    def public_inputs(self) -> list[int]:
        """Return the public inputs: the length of the script, its RLC and the randomness."""
        return [len(self.script_pubkey), script_rlc(self.script_pubkey, self.randomness), self.randomness]

    def mock_prove(
        self, parameters: CircuitParameters = default_parameters, instances: Optional[list[int]] = None
    ) -> MockProver:
        """Synthesize the circuit and return the mock prover checking it.

        Args:
            parameters (CircuitParameters): The parameters of the circuit.
            instances (Optional[list[int]]): The public inputs. Defaults to `self.public_inputs()`.
        """
        instances = self.public_inputs() if instances is None else instances
        logger.debug("Mock proving script of %d bytes with %d signatures", len(self.script_pubkey), len(self.sign_data))
        return MockProver.run(parameters.k, self, [instances])
