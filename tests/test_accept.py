import pytest

from cviewkit.accept import input_field_float, input_field_integer, input_field_max_length


@pytest.mark.parametrize("text", ["-", "0", "42", "-17", "+5", "9223372036854775807"])
def test_integer_accepts(text):
    assert input_field_integer(text, text[-1]) is True


@pytest.mark.parametrize("text", ["", "4a", " 1", "1_0", "1.5", "9223372036854775808", "--"])
def test_integer_rejects(text):
    assert input_field_integer(text, "x") is False


@pytest.mark.parametrize("text", ["-", ".", "-.", "3.14", "1e5", "-0.5", ".5", "5.", "inf", "NaN"])
def test_float_accepts(text):
    assert input_field_float(text, text[-1]) is True


@pytest.mark.parametrize("text", ["", "abc", "1.2.3", "1e", "1e400", " 1", "e5"])
def test_float_rejects(text):
    assert input_field_float(text, "x") is False


def test_float_hex():
    assert input_field_float("0x1p-2", "2") is True
    assert input_field_float("0x1", "1") is False


def test_max_length():
    accept = input_field_max_length(3)
    assert accept("abc", "c") is True
    assert accept("abcd", "d") is False
    assert accept("", "") is True


def test_max_length_counts_characters():
    accept = input_field_max_length(3)
    assert accept("日本語", "語") is True
    assert accept("日本語x", "x") is False