import pytest
from tx_engine import Script

from src.bitcoinvm.constants import FIELD_MODULUS, OP_NOP
from src.bitcoinvm.constraint_system.constraint_system import Circuit
from src.bitcoinvm.constraint_system.mock_prover import InstanceNotSatisfied, LookupNotSatisfied, MockProver
from src.bitcoinvm.execution.execution import ExecutionChip
from src.bitcoinvm.execution.script_parser import script_rlc, to_script_bytes
from src.bitcoinvm.gadgets.is_zero import inv0
from tests.util import save_trace

randomness = 0xDEADBEEF


class ExecutionCircuit(Circuit):
    """The execution region on its own."""

    def __init__(self, script, initial_stack=None):
        self.script = to_script_bytes(script)
        self.initial_stack = initial_stack
        self.config = None
        self.output = None

    @classmethod
    def configure(cls, meta):
        return ExecutionChip.configure(meta)

    def synthesize(self, config, layouter):
        chip = ExecutionChip(config)
        self.config = config
        self.output = chip.assign_script_pubkey_unroll(layouter, self.script, randomness, self.initial_stack)
        chip.expose_public(layouter, self.output)

    def public_inputs(self):
        return [len(self.script), script_rlc(self.script, randomness), randomness]


def failing_gates(prover):
    return {failure.gate for failure in prover.verify() if hasattr(failure, "gate")}


@pytest.mark.parametrize(
    ("script", "initial_stack"),
    [
        (Script.parse_string("OP_1"), None),
        (Script.parse_string("OP_16 OP_NOP OP_NOP"), None),
        (Script.parse_string("OP_0 OP_5"), None),
        (b"", [1]),
        (bytes.fromhex("01ab"), None),
        (bytes.fromhex("4c02abcd"), None),
        (bytes.fromhex("4d0300abcdef"), None),
        (bytes.fromhex("4e0100000007"), None),
        (bytes([75]) + bytes(range(1, 76)), None),
        (bytes.fromhex("4d0502") + bytes([1]) * 517, None),
        (bytes.fromhex("01ab") + bytes([0xAC, 0x51]), [0]),
        (bytes.fromhex("01ab") + bytes([0xAC, 0x51]), [1]),
    ],
)
def test_execution_region_is_satisfied(script, initial_stack, save_to_json_folder):
    circuit = ExecutionCircuit(script, initial_stack)
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])

    prover.assert_satisfied()

    if save_to_json_folder:
        save_trace(
            circuit.output.trace,
            circuit.public_inputs(),
            save_to_json_folder,
            "execution",
            f"satisfied_{circuit.script.hex()[:16]}",
        )


@pytest.mark.parametrize(
    ("script", "initial_stack"),
    [
        (b"", None),
        (b"", [0]),
        (Script.parse_string("OP_0"), None),
        (bytes.fromhex("0180"), None),
        (bytes.fromhex("01ab") + bytes([0xAC]), [0]),
    ],
)
def test_falsy_stack_top_is_rejected(script, initial_stack):
    circuit = ExecutionCircuit(script, initial_stack)
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])

    assert failing_gates(prover) == {"Stack top is truthy after execution"}


def test_wrong_public_inputs_are_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    script_length, rlc, r = circuit.public_inputs()
    prover = MockProver.run(10, circuit, [[script_length + 1, rlc, r]])

    failures = prover.verify()

    assert len(failures) == 1
    assert isinstance(failures[0], InstanceNotSatisfied)
    assert failures[0].instance_row == 0


def test_wrong_script_rlc_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    script_length, _, r = circuit.public_inputs()
    prover = MockProver.run(10, circuit, [[script_length, script_rlc(bytes([0x52]), r), r]])

    assert [failure.instance_row for failure in prover.verify()] == [1]


def test_script_rlc_tail_of_last_byte_is_zero():
    # Witness of OP_1 against the public inputs of OP_0: the RLC after the last byte absorbs the difference
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    forged_inputs = [1, script_rlc(bytes([0x00]), randomness), randomness]
    prover = MockProver.run(10, circuit, [forged_inputs])
    tail = (forged_inputs[1] - 0x51) * pow(randomness, -1, FIELD_MODULUS) % FIELD_MODULUS
    prover.assignment.columns[circuit.config.script_rlc_acc][0] = forged_inputs[1]
    prover.assignment.columns[circuit.config.script_rlc_acc][1] = tail

    assert failing_gates(prover) == {"script_rlc_acc is zero once script is read"}


@pytest.mark.parametrize("value", [1, 0xAB])
def test_tampered_script_rlc_of_last_byte_is_rejected(value):
    circuit = ExecutionCircuit(Script.parse_string("OP_1 OP_2"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    prover.assignment.columns[circuit.config.script_rlc_acc][2] = value

    assert "script_rlc_acc is zero once script is read" in failing_gates(prover)


def test_tampered_script_length_of_last_byte_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1 OP_2"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    # Claim one more byte after the last one, with a consistent inverse
    prover.assignment.columns[circuit.config.num_script_bytes_remaining][2] = 1
    prover.assignment.columns[circuit.config.script_bytes_remaining_is_zero.value_inv][2] = 1

    assert "Pop byte out of script_rlc_acc" in failing_gates(prover)


def test_tampered_stack_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    # Row 5 is a padding row: the stack may not change any more
    prover.assignment.columns[circuit.config.stack[1]][5] = 7

    assert failing_gates(prover) == {"Stack state unchanged once script is read"}


def test_tampered_push_value_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_3"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    for row in range(1, 522):
        prover.assignment.columns[circuit.config.stack[0]][row] = 4
    prover.assignment.columns[circuit.config.stack_top_is_falsy.value_inv][521] = inv0(4 * (4 - 0x80))

    assert failing_gates(prover) == {"OP_1 to OP_16"}


def test_tampered_opcode_class_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_2"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    indicators = circuit.config.indicators
    # Claim that OP_2 is OP_NOP, so that the stack is left unchanged
    prover.assignment.columns[indicators.op1_to_op16][1] = 0

    failures = prover.verify()

    assert LookupNotSatisfied("Opcode properties table", 1) in failures


def test_tampered_padding_opcode_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    assert prover.assignment.columns[circuit.config.opcode][2] == OP_NOP
    prover.assignment.columns[circuit.config.opcode][2] = 0x51
    for column, value in zip(circuit.config.indicators.as_tuple(), (1, 0, 1, 0, 0, 0, 0, 0)):
        prover.assignment.columns[column][2] = value

    assert failing_gates(prover) == {"Stack state unchanged once script is read"}


def test_tampered_randomness_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"))
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])
    prover.assignment.columns[circuit.config.randomness][10] = (randomness + 1) % FIELD_MODULUS

    assert failing_gates(prover) == {"Randomness values are the same in all rows"}


def test_non_boolean_initial_stack_is_rejected():
    circuit = ExecutionCircuit(Script.parse_string("OP_1"), [2])
    prover = MockProver.run(10, circuit, [circuit.public_inputs()])

    assert failing_gates(prover) == {"First row constraints"}
