import pytest

from src.bitcoinvm.checksig.parity_table import parity_table_rows


def test_parity_table_size():
    rows = parity_table_rows()

    assert len(rows) == 513
    assert len(set(rows)) == 513
    assert (0, 0) in rows


@pytest.mark.parametrize(
    ("prefix", "byte", "allowed"),
    [
        (0x02, 0x00, True),
        (0x02, 0xB8, True),
        (0x02, 0x01, False),
        (0x03, 0x01, True),
        (0x03, 0xFF, True),
        (0x03, 0xFE, False),
        (0x04, 0x00, True),
        (0x04, 0x01, True),
        (0x05, 0x00, False),
        (0x00, 0x01, False),
    ],
)
def test_parity_table_rows(prefix, byte, allowed):
    assert ((prefix, byte) in parity_table_rows()) == allowed
