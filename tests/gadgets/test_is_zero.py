import pytest

from src.bitcoinvm.constants import FIELD_MODULUS
from src.bitcoinvm.constraint_system.constraint_system import Circuit
from src.bitcoinvm.constraint_system.mock_prover import ConstraintNotSatisfied, MockProver
from src.bitcoinvm.gadgets.is_zero import IsZeroChip, inv0


class IsZeroCircuit(Circuit):
    """Checks that `expected[i]` is 1 iff `values[i]` is zero, optionally with a forged inverse witness."""

    def __init__(self, values, expected, forged_inverses=None):
        self.values = values
        self.expected = expected
        self.forged_inverses = forged_inverses or {}

    @classmethod
    def configure(cls, meta):
        q_enable = meta.selector()
        value = meta.advice_column()
        expected = meta.advice_column()
        is_zero = IsZeroChip.configure(
            meta,
            lambda vc: vc.query_selector(q_enable),
            lambda vc, rotation: vc.query_advice(value, rotation),
            meta.advice_column(),
        )
        meta.create_gate(
            "expected is the zero indicator",
            lambda vc: [
                (
                    "expected - is_zero",
                    vc.query_selector(q_enable) * (vc.query_advice(expected) - is_zero.expr(vc)),
                )
            ],
        )
        return {"q_enable": q_enable, "value": value, "expected": expected, "is_zero": is_zero}

    def synthesize(self, config, layouter):
        chip = IsZeroChip(config["is_zero"])

        def assign(region):
            for offset, (value, expected) in enumerate(zip(self.values, self.expected)):
                region.enable_selector(config["q_enable"], offset)
                region.assign_advice(config["value"], offset, value)
                region.assign_advice(config["expected"], offset, expected)
                if offset in self.forged_inverses:
                    region.assign_advice(config["is_zero"].value_inv, offset, self.forged_inverses[offset])
                else:
                    chip.assign(region, offset, value)

        layouter.assign_region("IsZero", assign)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, 0), (1, 1), (2, (FIELD_MODULUS + 1) // 2), (-1, FIELD_MODULUS - 1), (FIELD_MODULUS, 0)],
)
def test_inv0(value, expected):
    assert inv0(value) == expected


def test_is_zero_indicator():
    values = [0, 1, 5, FIELD_MODULUS - 1, 0x80]
    expected = [1, 0, 0, 0, 0]

    MockProver.run(4, IsZeroCircuit(values, expected), []).assert_satisfied()


def test_wrong_indicator_is_rejected():
    prover = MockProver.run(4, IsZeroCircuit([0, 7], [0, 1]), [])

    failures = prover.verify()

    assert ConstraintNotSatisfied("expected is the zero indicator", "expected - is_zero", 0) in failures
    assert ConstraintNotSatisfied("expected is the zero indicator", "expected - is_zero", 1) in failures


def test_forged_inverse_is_rejected():
    # A zero inverse would make the indicator of 7 equal to 1
    prover = MockProver.run(4, IsZeroCircuit([7], [1], forged_inverses={0: 0}), [])

    failures = prover.verify()

    assert failures == [ConstraintNotSatisfied("is_zero", "value * (1 - value * value_inv)", 0)]
