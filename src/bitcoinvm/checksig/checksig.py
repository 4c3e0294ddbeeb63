"""Checksig region: verification of the signatures of the public keys collected from the script.

The region has `MAX_CHECKSIG_COUNT` slot rows followed by a trailing row. Each slot verifies a (signature, public
key) pair with the ECDSA chip, decomposes the coordinates of the verified key into bytes and recomputes the RLC of
the key as serialized in the script. The slots holding real pairs come first, in reverse order of the
`OP_CHECKSIG`s, the remaining slots hold the padding pair `SignData.default()`.

The accumulator of row 0 is the same Horner fold of the public keys as the one computed by the execution region:
    - `num_checksig_opcodes` counts down from the number of real pairs to 0,
    - `pk_rlc_acc = pk_rlc + randomness * next pk_rlc_acc` while the count is not zero, and 0 afterwards.
"""

import logging
from dataclasses import dataclass

from src.bitcoinvm.checksig.parity_table import PkParityTableChip, PkParityTableConfig
from src.bitcoinvm.checksig.pk_parser import PublicKeyInScript
from src.bitcoinvm.checksig.sign_types import SignData
from src.bitcoinvm.checksig.util import pk_rlc, range_check, rlc_expression
from src.bitcoinvm.constants import (
    COORDINATE_BYTES,
    ECDSA_MESSAGE_HASH,
    FIELD_MODULUS,
    MAX_CHECKSIG_COUNT,
    NUMBER_OF_LIMBS,
    PK_POW_RAND_SIZE,
    PREFIX_PK_COMPRESSED_EVEN_Y,
    PREFIX_PK_COMPRESSED_ODD_Y,
    PREFIX_PK_UNCOMPRESSED,
)
from src.bitcoinvm.constraint_system.constraint_system import ConstraintSystem, VirtualCells
from src.bitcoinvm.constraint_system.errors import SynthesisError
from src.bitcoinvm.constraint_system.expression import Column, Expression, Rotation, Selector, TableColumn
from src.bitcoinvm.constraint_system.layouter import AssignedCell, Layouter, Region
from src.bitcoinvm.gadgets.ecc_chip import EccChip, EccConfig, limb_bit_lengths
from src.bitcoinvm.gadgets.ecdsa_chip import EcdsaChip
from src.bitcoinvm.gadgets.is_zero import IsZeroChip, IsZeroConfig
from src.bitcoinvm.gadgets.range_chip import RangeChip, RangeConfig

logger = logging.getLogger(__name__)

INV_TWO = pow(2, -1, FIELD_MODULUS)


@dataclass
class CheckSigConfig:
    """Configuration of the checksig region.

    Attributes:
        q_enable (Selector): Enabled on the slot rows.
        q_last (Selector): Enabled on the trailing row.
        num_checksig_opcodes (Column): The number of real pairs in this slot and the following ones.
        num_checksig_opcodes_is_zero (IsZeroConfig): Zero indicator of `num_checksig_opcodes`.
        pk_rlc_acc (Column): The Horner fold of the public keys of this slot and the following ones.
        pk_rlc (Column): The RLC of the public key of the slot, as serialized in the script.
        pk_prefix (Column): The SEC1 prefix of the public key of the slot.
        pk (list[list[Column]]): The little-endian bytes of the coordinates x and y of the public key.
        powers_of_randomness (list[Column]): The powers `r, r^2, ..., r^PK_POW_RAND_SIZE`.
        parity_table (PkParityTableConfig): The table of allowed (prefix, least significant byte of y) pairs.
        ecc (EccConfig): Configuration of the chip assigning the verified public keys.
        range (RangeConfig): Configuration of the chip decomposing the coordinates into bytes.
    """

    q_enable: Selector
    q_last: Selector
    num_checksig_opcodes: Column
    num_checksig_opcodes_is_zero: IsZeroConfig
    pk_rlc_acc: Column
    pk_rlc: Column
    pk_prefix: Column
    pk: list[list[Column]]
    powers_of_randomness: list[Column]
    parity_table: PkParityTableConfig
    ecc: EccConfig
    range: RangeConfig


@dataclass
class CheckSigOutputCells:
    """Cells of row 0 of the checksig region, shared with the execution region."""

    pk_rlc_acc: AssignedCell
    num_checksig_opcodes: AssignedCell
    randomness: AssignedCell


class OpCheckSigChip:
    """Chip verifying the signatures of the public keys consumed by the `OP_CHECKSIG`s of the script."""

    def __init__(self, config: CheckSigConfig):
        self.config = config
        self.ecdsa_chip = EcdsaChip(EccChip(config.ecc))
        self.range_chip = RangeChip(config.range)

    @staticmethod
    def configure(meta: ConstraintSystem) -> CheckSigConfig:
        q_enable = meta.complex_selector()
        q_last = meta.selector()
        num_checksig_opcodes = meta.advice_column()
        pk_rlc_acc = meta.advice_column()
        pk_rlc = meta.advice_column()
        pk_prefix = meta.advice_column()
        pk = [[meta.advice_column() for _ in range(COORDINATE_BYTES)] for _ in range(2)]
        powers_of_randomness = [meta.advice_column() for _ in range(PK_POW_RAND_SIZE)]
        for column in (num_checksig_opcodes, pk_rlc_acc, powers_of_randomness[0], *pk[0], *pk[1]):
            meta.enable_equality(column)

        num_checksig_opcodes_is_zero = IsZeroChip.configure(
            meta,
            lambda vc: vc.query_selector(q_enable),
            lambda vc, rotation: vc.query_advice(num_checksig_opcodes, rotation),
            meta.advice_column(),
            "num_checksig_opcodes is zero",
        )
        parity_table = PkParityTableChip.configure(meta)
        ecc = EccChip.configure(meta)
        range_config = RangeChip.configure(meta)

        def powers_gate(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_enable)
            r = vc.query_advice(powers_of_randomness[0])
            constraints = [
                (
                    "randomness is the same in all rows",
                    q * (vc.query_advice(powers_of_randomness[0], Rotation.next) - r),
                )
            ]
            constraints += [
                (
                    f"r^{i + 1} = r^{i} * r",
                    q * (vc.query_advice(powers_of_randomness[i]) - vc.query_advice(powers_of_randomness[i - 1]) * r),
                )
                for i in range(1, PK_POW_RAND_SIZE)
            ]
            return constraints

        meta.create_gate("Powers of randomness", powers_gate)

        def accumulator_gate(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_enable)
            is_zero = num_checksig_opcodes_is_zero.expr(vc)
            count = vc.query_advice(num_checksig_opcodes)
            next_count = vc.query_advice(num_checksig_opcodes, Rotation.next)
            acc = vc.query_advice(pk_rlc_acc)
            next_acc = vc.query_advice(pk_rlc_acc, Rotation.next)
            r = vc.query_advice(powers_of_randomness[0])
            return [
                ("num_checksig_opcodes decreases by one", q * (1 - is_zero) * (next_count - count + 1)),
                ("num_checksig_opcodes stays zero", q * is_zero * next_count),
                (
                    "pk_rlc_acc = pk_rlc + randomness * next pk_rlc_acc",
                    q * (1 - is_zero) * (acc - vc.query_advice(pk_rlc) - r * next_acc),
                ),
                ("pk_rlc_acc = 0 once all public keys are folded", q * is_zero * acc),
            ]

        meta.create_gate("Checksig count and public key accumulator", accumulator_gate)

        meta.create_gate(
            "Trailing row of the checksig region",
            lambda vc: [
                ("num_checksig_opcodes = 0", vc.query_selector(q_last) * vc.query_advice(num_checksig_opcodes)),
                ("pk_rlc_acc = 0", vc.query_selector(q_last) * vc.query_advice(pk_rlc_acc)),
            ],
        )

        meta.create_gate(
            "Public key prefix is 2, 3 or 4",
            lambda vc: [
                (
                    "(prefix - 2) * (prefix - 3) * (prefix - 4) = 0",
                    vc.query_selector(q_enable)
                    * range_check(
                        vc.query_advice(pk_prefix),
                        [PREFIX_PK_COMPRESSED_EVEN_Y, PREFIX_PK_COMPRESSED_ODD_Y, PREFIX_PK_UNCOMPRESSED],
                    ),
                )
            ],
        )

        def pk_rlc_gate(vc: VirtualCells) -> list[tuple[str, Expression]]:
            q = vc.query_selector(q_enable)
            prefix = vc.query_advice(pk_prefix)
            x_le = [vc.query_advice(column) for column in pk[0]]
            y_le = [vc.query_advice(column) for column in pk[1]]
            powers = [vc.query_advice(column) for column in powers_of_randomness]
            # 1 if the prefix is 4, 0 if it is 2 or 3
            is_uncompressed = (prefix - PREFIX_PK_COMPRESSED_EVEN_Y) * (prefix - PREFIX_PK_COMPRESSED_ODD_Y) * INV_TWO
            compressed_rlc = rlc_expression([*x_le, prefix], powers)
            uncompressed_rlc = rlc_expression([*y_le, *x_le, prefix], powers)
            return [
                (
                    "pk_rlc is the RLC of the serialized public key",
                    q
                    * (
                        vc.query_advice(pk_rlc)
                        - is_uncompressed * uncompressed_rlc
                        - (1 - is_uncompressed) * compressed_rlc
                    ),
                )
            ]

        meta.create_gate("Public key RLC", pk_rlc_gate)

        def parity_lookup(vc: VirtualCells) -> list[tuple[Expression, TableColumn]]:
            q = vc.query_selector(q_enable)
            return [
                (q * vc.query_advice(pk_prefix), parity_table.prefix),
                (q * vc.query_advice(pk[1][0]), parity_table.parity),
            ]

        meta.lookup("Public key parity table", parity_lookup)

        return CheckSigConfig(
            q_enable=q_enable,
            q_last=q_last,
            num_checksig_opcodes=num_checksig_opcodes,
            num_checksig_opcodes_is_zero=num_checksig_opcodes_is_zero,
            pk_rlc_acc=pk_rlc_acc,
            pk_rlc=pk_rlc,
            pk_prefix=pk_prefix,
            pk=pk,
            powers_of_randomness=powers_of_randomness,
            parity_table=parity_table,
            ecc=ecc,
            range=range_config,
        )

    def load_tables(self, layouter: Layouter) -> None:
        PkParityTableChip(self.config.parity_table).load(layouter)
        self.range_chip.load_table(layouter)

    def assign(
        self,
        layouter: Layouter,
        randomness: int,
        sign_data: list[SignData],
        collected_keys: list[PublicKeyInScript],
    ) -> CheckSigOutputCells:
        """Assign the checksig region.

        Args:
            layouter (Layouter): The layouter.
            randomness (int): The randomness used in every RLC.
            sign_data (list[SignData]): The (signature, public key) pairs, in the order of the `OP_CHECKSIG`s.
            collected_keys (list[PublicKeyInScript]): The public keys collected from the script.

        Returns:
            The cells of row 0 shared with the execution region.

        Raises:
            ValueError: If there are more than `MAX_CHECKSIG_COUNT` pairs.
            SynthesisError: If the pairs do not match the collected public keys, or if a signature does not
                verify against `ECDSA_MESSAGE_HASH`.
        """
        if len(sign_data) > MAX_CHECKSIG_COUNT:
            msg = f"At most {MAX_CHECKSIG_COUNT} signatures can be verified: "
            msg += f"got {len(sign_data)}"
            raise ValueError(msg)
        if len(sign_data) != len(collected_keys):
            msg = f"Got {len(sign_data)} signatures for {len(collected_keys)} public keys collected from the script"
            raise SynthesisError(msg)
        for i, (data, key) in enumerate(zip(sign_data, collected_keys)):
            if data.pk != key.point:
                msg = f"The public key of signature {i} does not match the public key {key.bytes.hex()} "
                msg += "collected from the script"
                raise SynthesisError(msg)
            if data.msg_hash != ECDSA_MESSAGE_HASH:
                msg = f"Signature {i} signs the message hash {data.msg_hash}: "
                msg += f"signatures are verified against {ECDSA_MESSAGE_HASH}"
                raise SynthesisError(msg)

        randomness %= FIELD_MODULUS
        # Slot j holds the public key folded j-th from the last one
        slots: list[tuple[SignData, bytes]] = [(data, key.bytes) for data, key in zip(sign_data, collected_keys)]
        slots = slots[::-1]
        padding = SignData.default()
        padding_pk = bytes([PREFIX_PK_COMPRESSED_EVEN_Y]) + padding.pk[0].to_bytes(COORDINATE_BYTES, "big")
        slots += [(padding, padding_pk)] * (MAX_CHECKSIG_COUNT - len(slots))

        self.load_tables(layouter)
        return layouter.assign_region(
            "Checksig", lambda region: self._assign_slots(region, randomness, slots, len(sign_data))
        )

    def _assign_slots(
        self, region: Region, randomness: int, slots: list[tuple[SignData, bytes]], num_checksig_opcodes: int
    ) -> CheckSigOutputCells:
        config = self.config
        count_is_zero = IsZeroChip(config.num_checksig_opcodes_is_zero)
        powers = [pow(randomness, i + 1, FIELD_MODULUS) for i in range(PK_POW_RAND_SIZE)]

        counts = [max(num_checksig_opcodes - j, 0) for j in range(MAX_CHECKSIG_COUNT)] + [0]
        pk_rlcs = [pk_rlc(serialized_pk, randomness) for _, serialized_pk in slots]
        accs = [0] * (MAX_CHECKSIG_COUNT + 1)
        for j in range(MAX_CHECKSIG_COUNT - 1, -1, -1):
            if counts[j] != 0:
                accs[j] = (pk_rlcs[j] + randomness * accs[j + 1]) % FIELD_MODULUS

        first_row = {}
        for j, (data, serialized_pk) in enumerate(slots):
            region.enable_selector(config.q_enable, j)
            point = self.ecdsa_chip.verify(region, j, data.signature, data.pk, ECDSA_MESSAGE_HASH)
            for coordinate, limbs in enumerate((point.x, point.y)):
                le_bytes = []
                for i, (limb, bits) in enumerate(zip(limbs, limb_bit_lengths())):
                    offset = (j * 2 + coordinate) * NUMBER_OF_LIMBS + i
                    le_bytes += self.range_chip.decompose(region, offset, limb, bits)
                for column, byte in zip(config.pk[coordinate], le_bytes):
                    region.copy_advice(byte, column, j)

            region.assign_advice(config.pk_prefix, j, serialized_pk[0])
            region.assign_advice(config.pk_rlc, j, pk_rlcs[j])
            power_cells = [
                region.assign_advice(column, j, power) for column, power in zip(config.powers_of_randomness, powers)
            ]
            count = region.assign_advice(config.num_checksig_opcodes, j, counts[j])
            count_is_zero.assign(region, j, counts[j])
            acc = region.assign_advice(config.pk_rlc_acc, j, accs[j])
            if j == 0:
                first_row = {"count": count, "acc": acc, "randomness": power_cells[0]}

        last = MAX_CHECKSIG_COUNT
        region.enable_selector(config.q_last, last)
        region.assign_advice(config.num_checksig_opcodes, last, 0)
        region.assign_advice(config.pk_rlc_acc, last, 0)
        region.assign_advice(config.powers_of_randomness[0], last, randomness)

        logger.debug("Verified %d signatures, %d padding slots", num_checksig_opcodes, last - num_checksig_opcodes)
        return CheckSigOutputCells(
            pk_rlc_acc=first_row["acc"],
            num_checksig_opcodes=first_row["count"],
            randomness=first_row["randomness"],
        )
