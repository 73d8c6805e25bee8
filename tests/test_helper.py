import datetime

import pytest

from toolbelt.helper import (
    as_boolean,
    as_float,
    as_int,
    as_string,
    extract_path,
    is_map,
    is_slice,
    sort_keys,
)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("++$var", "var"),
        ("->${var.z}", "var.z"),
        ("<-$var.key[0]", "var.key[0]"),
    ],
)
def test_extract_path(expression, expected):
    assert extract_path(expression) == expected


def test_is_map_and_is_slice():
    assert is_map({"a": 1}) is True
    assert is_map([1]) is False
    assert is_slice([1, 2]) is True
    assert is_slice((1,)) is True
    assert is_slice("abc") is False


def test_as_string():
    assert as_string(True) == "true"
    assert as_string(2323232323223) == "2323232323223"
    assert as_string(100.0) == "100"
    assert as_string(1.5) == "1.5"
    assert as_string(b"abc") == "abc"
    assert as_string("x") == "x"


def test_as_int():
    assert as_int(4.3) == 4
    assert as_int("3434") == 3434
    assert as_int("bad") == 0
    assert as_int(None) == 0


def test_as_float():
    assert as_float("0.3") == 0.3
    assert as_float(2) == 2.0
    assert as_float("bad") == 0.0


def test_as_boolean():
    assert as_boolean("true") is True
    assert as_boolean("1") is True
    assert as_boolean("no") is False
    assert as_boolean(0) is False


def test_sort_keys_int():
    assert sort_keys(10, {10: None, 3: None, 1: None, 2: None}) == [1, 2, 3, 10]


def test_sort_keys_float():
    assert sort_keys(1.2, {10.0: None, 3.1: None, 1.2: None, 2.2: None}) == [
        1.2,
        2.2,
        3.1,
        10.0,
    ]


def test_sort_keys_string():
    mapping = {"010": None, "003": None, "001": None, "022": None}
    assert sort_keys("010", mapping) == ["001", "003", "010", "022"]


def test_sort_keys_empty():
    assert sort_keys(None, {}) == []


def test_sort_keys_unsupported():
    moment = datetime.datetime(2020, 1, 1)
    with pytest.raises(ValueError, match="unable sort"):
        sort_keys(moment, {moment: None})