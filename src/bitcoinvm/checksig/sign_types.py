"""ECDSA signing data handed to the checksig region."""

from dataclasses import dataclass, field

from ecdsa import SECP256k1
from ecdsa.ecdsa import Private_key, Public_key
from tx_engine.engine.util import GROUP_ORDER_INT, Gx, Gy

from src.bitcoinvm.constants import ECDSA_MESSAGE_HASH


def sign(randomness: int, sk: int, msg_hash: int) -> tuple[tuple[int, int], tuple[int, int]]:
    """Sign `msg_hash` with the secret key `sk`, using the nonce `randomness`.

    Args:
        randomness (int): The ECDSA nonce.
        sk (int): The secret key.
        msg_hash (int): The hash of the signed message.

    Returns:
        The signature `(r, s)` and the public key `(x, y)` of `sk`.
    """
    if not 0 < sk < GROUP_ORDER_INT or not 0 < randomness < GROUP_ORDER_INT:
        msg = "The secret key and the nonce must be in [1, n-1], n being the order of secp256k1"
        raise ValueError(msg)
    public_point = SECP256k1.generator * sk
    public_key = Public_key(SECP256k1.generator, public_point)
    signature = Private_key(public_key, sk).sign(msg_hash, randomness)
    return (int(signature.r), int(signature.s)), (int(public_point.x()), int(public_point.y()))


@dataclass(frozen=True)
class SignData:
    """A signature and the public key it verifies against.

    Attributes:
        signature (tuple[int, int]): The signature `(r, s)`.
        pk (tuple[int, int]): The affine coordinates of the public key.
        msg_hash (int): The signed message hash.
    """

    signature: tuple[int, int]
    pk: tuple[int, int]
    msg_hash: int = field(default=ECDSA_MESSAGE_HASH)

    @classmethod
    def default(cls) -> "SignData":
        """Return the signing data filling the unused signature slots.

        The signature of `ECDSA_MESSAGE_HASH` by the secret key 1 with nonce 1: the public key is the generator
        `G`, and the signature is `(Gx mod n, (1 + Gx) mod n)`.
        """
        r = Gx % GROUP_ORDER_INT
        s = (ECDSA_MESSAGE_HASH + r) % GROUP_ORDER_INT
        return cls(signature=(r, s), pk=(Gx, Gy), msg_hash=ECDSA_MESSAGE_HASH)
