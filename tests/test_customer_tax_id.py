import pytest

from app.stylehub.services.customers import format_cnpj, format_cpf, format_cpf_cnpj, only_digits


def test_only_digits_strips_masks():
    assert only_digits("123.456.789-01") == "12345678901"
    assert only_digits("(11) 98765-4321") == "11987654321"
    assert only_digits(None) == ""


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12345678901", "123.456.789-01"),
        ("123.456.789-01", "123.456.789-01"),
        ("12345678000195", "12.345.678/0001-95"),
        ("", None),
        (None, None),
    ],
)
def test_format_cpf_cnpj(value, expected):
    assert format_cpf_cnpj(value) == expected


def test_partial_values_are_left_as_digits():
    assert format_cpf("1234") == "1234"
    assert format_cnpj("123456") == "123456"
