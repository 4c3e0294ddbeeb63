import pytest
from tx_engine.engine.util import GROUP_ORDER_INT, Gx, Gy

from src.bitcoinvm.checksig.sign_types import SignData, sign
from src.bitcoinvm.constraint_system.errors import SynthesisError
from src.bitcoinvm.gadgets.ecc_chip import integer_to_limbs, limb_bit_lengths
from src.bitcoinvm.gadgets.ecdsa_chip import verify_signature


def test_limb_bit_lengths():
    assert limb_bit_lengths() == [72, 72, 72, 40]
    assert sum(limb_bit_lengths()) == 256


@pytest.mark.parametrize("n", [0, 1, Gx, Gy, 2**256 - 1])
def test_integer_to_limbs(n):
    limbs = integer_to_limbs(n)

    assert len(limbs) == 4
    assert all(limb < 2**bits for limb, bits in zip(limbs, limb_bit_lengths()))
    assert sum(limb << (72 * i) for i, limb in enumerate(limbs)) == n


def test_integer_to_limbs_overflow():
    with pytest.raises(ValueError, match=r"does not fit in 32 bytes"):
        integer_to_limbs(2**256)


@pytest.mark.parametrize(
    ("sk", "nonce", "msg_hash"),
    [(1, 1, 1), (42, 7, 1), (GROUP_ORDER_INT - 1, 123456789, 2**255 + 3)],
)
def test_sign_and_verify(sk, nonce, msg_hash):
    signature, pk = sign(nonce, sk, msg_hash)

    assert verify_signature(signature, pk, msg_hash)
    assert not verify_signature(signature, pk, msg_hash + 1)
    assert not verify_signature((signature[0], (signature[1] + 1) % GROUP_ORDER_INT), pk, msg_hash)


def test_default_sign_data_verifies():
    default = SignData.default()

    assert default.pk == (Gx, Gy)
    assert default.signature == sign(1, 1, default.msg_hash)[0]
    assert verify_signature(default.signature, default.pk, default.msg_hash)


@pytest.mark.parametrize(("sk", "nonce"), [(0, 1), (1, 0), (GROUP_ORDER_INT, 1)])
def test_sign_errors(sk, nonce):
    with pytest.raises(ValueError, match=r"must be in \[1, n-1\]"):
        sign(nonce, sk, 1)


def test_verify_off_curve_public_key():
    with pytest.raises(SynthesisError, match=r"is not on secp256k1"):
        verify_signature((1, 1), (1, 1), 1)
