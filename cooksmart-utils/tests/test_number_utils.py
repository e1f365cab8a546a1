import pytest

from cooksmart_utils.ingredients.number_utils import (
    _is_fraction,
    _parse_fraction,
    safe_float,
    safe_int,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2.5", 2.5),
        (3, 3.0),
        ("1/2", 0.5),
        ("12g", 12.0),
        ("lots", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (-4, 0.0),
    ],
)
def test_safe_float(value, expected):
    """Test loose numeric coercion with the default floor of zero."""
    assert safe_float(value) == expected


@pytest.mark.parametrize(
    "value, default, expected",
    [
        ("25 minutes", 30, 25),
        (None, 4, 4),
        ("six", 4, 4),
        (2.5, 0, 3),
        (0.5, 0, 1),
        (1.49, 0, 1),
        ("350 kcal", 0, 350),
        (-5, 30, 0),
    ],
)
def test_safe_int(value, default, expected):
    """Halves round up and negatives clamp to zero."""
    assert safe_int(value, default=default) == expected


def test_safe_int_without_minimum():
    assert safe_int("-7", minimum=None) == -7


def test_fraction_helpers():
    assert _is_fraction("3/4")
    assert not _is_fraction("3/x")
    assert float(_parse_fraction("3/4")) == 0.75
    with pytest.raises(ZeroDivisionError):
        _parse_fraction("1/0")


@pytest.mark.parametrize(
    "value",
    [
        10**400,
        "1e999",
        "1" + "0" * 400 + " kcal",
        "1" + "0" * 5000,
    ],
)
def test_oversized_numbers_use_default(value):
    assert safe_float(value, default=1.5) == 1.5
    assert safe_int(value, default=4) == 4
