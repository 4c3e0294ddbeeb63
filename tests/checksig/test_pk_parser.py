import pytest
from tx_engine import Script
from tx_engine.engine.util import Gx, Gy

from src.bitcoinvm.checksig.pk_parser import InvalidPublicKeyError, collect_public_keys, parse_public_key
from src.bitcoinvm.execution.script_parser import MalformedScriptError
from src.bitcoinvm.types.stack_elements import SignatureFlag
from src.bitcoinvm.util.utility_functions import p2pk_script
from tests.util import generate_sign_data, serialize_public_key

pk_a = generate_sign_data(sk=3, nonce=5).pk
pk_b = generate_sign_data(sk=11, nonce=13).pk


@pytest.mark.parametrize(
    ("point", "compressed"),
    [((Gx, Gy), True), ((Gx, Gy), False), (pk_a, True), (pk_a, False), (pk_b, True)],
)
def test_parse_public_key(point, compressed):
    data = serialize_public_key(point, compressed)
    public_key = parse_public_key(data)

    assert public_key.point == point
    assert public_key.bytes == data
    assert public_key.is_compressed == compressed
    assert public_key.prefix == data[0]


@pytest.mark.parametrize(
    ("data", "msg"),
    [
        (b"", r"Public keys must start with 0x02, 0x03 or 0x04: got empty data"),
        (bytes([0x05]) + Gx.to_bytes(32, "big"), r"Public keys must start with 0x02, 0x03 or 0x04: got 05"),
        (bytes([0x04]) + Gx.to_bytes(32, "big"), r"Public keys with prefix 04 have 65 bytes: got 33"),
        (bytes(33), r"Public keys must start with 0x02, 0x03 or 0x04: got 00"),
        (serialize_public_key((Gx, Gy))[:-1], r"Public keys with prefix 02 have 33 bytes: got 32"),
        (bytes([0x04]) + (1).to_bytes(32, "big") + (1).to_bytes(32, "big"), r"is not a point of secp256k1"),
    ],
)
def test_parse_public_key_errors(data, msg):
    with pytest.raises(InvalidPublicKeyError, match=msg):
        parse_public_key(data)


def test_collect_p2pk():
    script = p2pk_script(serialize_public_key(pk_a))

    keys = collect_public_keys(script, [SignatureFlag.VALID])

    assert [key.point for key in keys] == [pk_a]


def test_collect_skips_invalid_flags():
    script = p2pk_script(serialize_public_key(pk_a))

    assert collect_public_keys(script, [SignatureFlag.INVALID]) == []


def test_collect_multiple_keys_in_order():
    script = p2pk_script(serialize_public_key(pk_a)) + p2pk_script(serialize_public_key(pk_b, compressed=False))

    keys = collect_public_keys(script, [SignatureFlag.VALID])

    assert [key.point for key in keys] == [pk_a, pk_b]
    assert [key.is_compressed for key in keys] == [True, False]


def test_collect_with_pushdata_and_nop():
    public_key = serialize_public_key(pk_b)
    script = bytes([0x61, 0x4C, len(public_key)]) + public_key + bytes([0xAC, 0x61])

    keys = collect_public_keys(script, [SignatureFlag.VALID])

    assert [key.bytes for key in keys] == [public_key]


def test_invalid_key_is_ignored_if_flag_is_invalid():
    script = bytes.fromhex("01ab") + bytes([0xAC])

    assert collect_public_keys(script, [SignatureFlag.INVALID]) == []


@pytest.mark.parametrize(
    ("script", "initial_stack", "error", "msg"),
    [
        (
            p2pk_script(serialize_public_key(pk_a)),
            [],
            MalformedScriptError,
            r"OP_CHECKSIG at position 34 needs two stack elements: got 1",
        ),
        (
            Script.parse_string("OP_1") + p2pk_script(serialize_public_key(pk_a)),
            [],
            MalformedScriptError,
            r"expects a signature flag below the public key",
        ),
        (
            Script.parse_string("OP_CHECKSIG"),
            [SignatureFlag.VALID, SignatureFlag.VALID],
            MalformedScriptError,
            r"expects a public key on top of the stack",
        ),
        (bytes([0x4F]), [], MalformedScriptError, r"Unsupported opcode 0x4f at position 0"),
        (bytes.fromhex("4c00"), [], MalformedScriptError, r"OP_PUSHDATA with a zero length field at position 0"),
        (bytes.fromhex("4c05abcd"), [], MalformedScriptError, r"Push of 5 bytes at position 2 runs past the end"),
        (bytes.fromhex("4d01"), [], MalformedScriptError, r"Push of 2 bytes at position 1 runs past the end"),
        (bytes([0x51]) * 34, [], MalformedScriptError, r"Stack overflow at position 33: the stack holds at most 33"),
        (bytes([0x00]), [SignatureFlag.VALID] * 33, MalformedScriptError, r"Stack overflow at position 0"),
        (
            bytes.fromhex("01ab") + bytes([0xAC]),
            [SignatureFlag.VALID],
            InvalidPublicKeyError,
            r"Public keys must start with 0x02, 0x03 or 0x04: got ab",
        ),
    ],
)
def test_collect_errors(script, initial_stack, error, msg):
    with pytest.raises(error, match=msg):
        collect_public_keys(script, initial_stack)


def test_collect_with_full_stack():
    public_key = serialize_public_key(pk_a)
    initial_stack = [SignatureFlag.VALID] + [SignatureFlag.INVALID] * 31

    keys = collect_public_keys(p2pk_script(public_key) + Script.parse_string("OP_1"), initial_stack)

    assert [key.point for key in keys] == [pk_a]
