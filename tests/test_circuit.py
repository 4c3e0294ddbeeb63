import pytest

from src.bitcoinvm.checksig.pk_parser import InvalidPublicKeyError, PublicKeyInScript
from src.bitcoinvm.checksig.sign_types import SignData
from src.bitcoinvm.circuit import BitcoinVMCircuit
from src.bitcoinvm.constraint_system.errors import SynthesisError
from src.bitcoinvm.constraint_system.mock_prover import InstanceNotSatisfied, PermutationNotSatisfied
from src.bitcoinvm.execution.script_parser import MalformedScriptError, interpret, script_rlc, to_script_bytes
from src.bitcoinvm.types.stack_elements import SignatureFlag
from src.bitcoinvm.util.utility_circuit_params import default_parameters
from src.bitcoinvm.util.utility_functions import derive_randomness, p2pk_script
from tests.util import generate_sign_data, save_trace, serialize_public_key

parameters = default_parameters.with_overrides(randomness=0x1F2E3D4C5B6A7988)

sign_data = [
    generate_sign_data(sk=2, nonce=3),
    generate_sign_data(sk=5, nonce=7),
    generate_sign_data(sk=11, nonce=13),
    generate_sign_data(sk=17, nonce=19),
    generate_sign_data(sk=23, nonce=29),
]


def multi_p2pk_script(data: list[SignData], compressed: list[bool]):
    out = p2pk_script(serialize_public_key(data[0].pk, compressed[0]))
    for d, c in zip(data[1:], compressed[1:]):
        out += p2pk_script(serialize_public_key(d.pk, c))
    return out


@pytest.mark.parametrize(
    ("num_signatures", "compressed"),
    [
        (1, [True]),
        (1, [False]),
        (2, [True, False]),
        (4, [False, True, True, False]),
    ],
)
def test_signed_scripts_are_satisfied(num_signatures, compressed, save_to_json_folder):
    data = sign_data[:num_signatures]
    script = multi_p2pk_script(data, compressed)
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], data, parameters)

    prover = circuit.mock_prove(parameters)

    prover.assert_satisfied()
    if save_to_json_folder:
        trace = interpret(script, circuit.randomness, circuit.initial_stack)
        test_name = f"checksig_{num_signatures}_" + "".join(str(int(c)) for c in compressed)
        save_trace(trace, circuit.public_inputs(), save_to_json_folder, "circuit", test_name)


def test_script_without_checksig_is_satisfied():
    circuit = BitcoinVMCircuit.from_script(bytes.fromhex("0102"), [], [], parameters)

    circuit.mock_prove(parameters).assert_satisfied()


def test_public_inputs():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data[:1], parameters)

    assert circuit.public_inputs() == [
        35,
        script_rlc(script, parameters.randomness),
        parameters.randomness,
    ]


def test_randomness_is_derived_from_the_script_by_default():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data[:1])

    assert circuit.randomness == derive_randomness(script)
    assert circuit.public_inputs()[2] == derive_randomness(to_script_bytes(script))


def test_invalid_signature_flag_is_rejected():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.INVALID], [], parameters)

    failures = circuit.mock_prove(parameters).verify()

    assert {getattr(failure, "gate", None) for failure in failures} == {"Stack top is truthy after execution"}


def test_wrong_public_inputs_are_rejected():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data[:1], parameters)
    script_length, rlc, r = circuit.public_inputs()

    failures = circuit.mock_prove(parameters, [script_length, rlc + 1, r]).verify()

    assert len(failures) == 1
    assert isinstance(failures[0], InstanceNotSatisfied)
    assert failures[0].instance_row == 1


def test_accumulators_must_match():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data[:1], parameters)
    # Forge the collected key so that the checksig region folds another public key
    circuit.collected_keys = [PublicKeyInScript(serialize_public_key(sign_data[1].pk), sign_data[1].pk)]
    circuit.sign_data = sign_data[1:2]

    failures = circuit.mock_prove(parameters).verify()

    assert len(failures) == 1
    assert isinstance(failures[0], PermutationNotSatisfied)


def test_signature_for_another_key_is_rejected():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data[1:2], parameters)

    with pytest.raises(SynthesisError, match=r"The public key of signature 0 does not match the public key"):
        circuit.mock_prove(parameters)


def test_bad_signature_is_rejected():
    data = sign_data[0]
    forged = SignData((data.signature[0], data.signature[1] + 1), data.pk)
    script = p2pk_script(serialize_public_key(data.pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], [forged], parameters)

    with pytest.raises(SynthesisError, match=r"does not verify against the public key"):
        circuit.mock_prove(parameters)


def test_signature_of_another_message_hash_is_rejected():
    data = generate_sign_data(sk=42, nonce=7, msg_hash=12345)
    script = p2pk_script(serialize_public_key(data.pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], [data], parameters)

    with pytest.raises(SynthesisError, match=r"Signature 0 signs the message hash 12345"):
        circuit.mock_prove(parameters)


def test_signature_is_verified_against_the_fixed_message_hash():
    data = generate_sign_data(sk=42, nonce=7, msg_hash=12345)
    relabelled = SignData(data.signature, data.pk)
    script = p2pk_script(serialize_public_key(data.pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], [relabelled], parameters)

    with pytest.raises(SynthesisError, match=r"does not verify against the public key"):
        circuit.mock_prove(parameters)


def test_missing_signature_is_rejected():
    script = p2pk_script(serialize_public_key(sign_data[0].pk))
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], [], parameters)

    with pytest.raises(SynthesisError, match=r"Got 0 signatures for 1 public keys collected from the script"):
        circuit.mock_prove(parameters)


def test_too_many_signatures():
    script = multi_p2pk_script(sign_data, [True] * 5)
    circuit = BitcoinVMCircuit.from_script(script, [SignatureFlag.VALID], sign_data, parameters)

    with pytest.raises(ValueError, match=r"At most 4 signatures can be verified: got 5"):
        circuit.mock_prove(parameters)


@pytest.mark.parametrize(
    ("script", "initial_stack", "error"),
    [
        (bytes([0x4F]), [], MalformedScriptError),
        (bytes.fromhex("01ab") + bytes([0xAC]), [SignatureFlag.VALID], InvalidPublicKeyError),
    ],
)
def test_from_script_errors(script, initial_stack, error):
    with pytest.raises(error):
        BitcoinVMCircuit.from_script(script, initial_stack, [], parameters)
