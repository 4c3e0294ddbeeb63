import pytest

from src.bitcoinvm.types.stack_elements import SignatureFlag, StackData


def test_stack_data():
    assert len(StackData(b"abc")) == 3
    assert StackData(b"abc") == StackData(b"abc")


@pytest.mark.parametrize(("flag", "value"), [(SignatureFlag.INVALID, 0), (SignatureFlag.VALID, 1)])
def test_signature_flag_values(flag, value):
    assert flag.value == value
    assert SignatureFlag(value) == flag
