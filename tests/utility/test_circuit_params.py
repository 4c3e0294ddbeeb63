import pytest

from src.bitcoinvm.util.utility_circuit_params import CircuitParameters, default_parameters


def test_default_parameters():
    assert default_parameters.k == 10
    assert default_parameters.randomness is None


def test_with_overrides_does_not_modify_the_original():
    parameters = default_parameters.with_overrides(k=11, randomness=5)

    assert (parameters.k, parameters.randomness) == (11, 5)
    assert (default_parameters.k, default_parameters.randomness) == (10, None)


def test_with_unknown_override():
    with pytest.raises(AttributeError, match=r"CircuitParameters has no attribute 'rows'"):
        default_parameters.with_overrides(rows=1024)


@pytest.mark.parametrize("k", [0, 9])
def test_circuit_too_small(k):
    with pytest.raises(ValueError, match=r"The circuit needs at least 522 rows"):
        CircuitParameters(k=k)


def test_from_toml(tmp_path):
    path = tmp_path / "circuit.toml"
    path.write_text("[circuit]\nk = 11\nrandomness = 4660\n")

    parameters = CircuitParameters.from_toml(path)

    assert parameters == CircuitParameters(k=11, randomness=4660)


def test_from_toml_without_circuit_table(tmp_path):
    path = tmp_path / "empty.toml"
    path.write_text("[other]\nkey = 1\n")

    assert CircuitParameters.from_toml(str(path)) == default_parameters


def test_from_toml_with_invalid_k(tmp_path):
    path = tmp_path / "small.toml"
    path.write_text("[circuit]\nk = 8\n")

    with pytest.raises(ValueError, match=r"k = 8 gives 256"):
        CircuitParameters.from_toml(path)
