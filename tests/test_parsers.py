import pytest
from orcamentos.adapters.parsers import (
    formatar_data,
    formatar_moeda,
    formatar_numero,
    parse_data,
    parse_valor,
)

@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("2025-11-15", "2025-11-15"),
        ("15/11/2025", "2025-11-15"),
        ("15-11-2025", "2025-11-15"),
        ("15/11/25", "2025-11-15"),
        ("", None),
        (None, None),
    ],
)
def test_parse_data(txt, esperado):
    assert parse_data(txt) == esperado


def test_parse_data_invalida():
    with pytest.raises(ValueError):
        parse_data("amanhã")


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("1.234,56", 1234.56),
        ("R$ 48,75", 48.75),
        ("48.75", 48.75),
        ("-10", -10.0),
        ("abc", None),
        (None, None),
    ],
)
def test_parse_valor(txt, esperado):
    assert parse_valor(txt) == esperado


def test_formatacao_brasileira():
    assert formatar_numero(1234.5) == "1.234,50"
    assert formatar_numero(30, 1) == "30,0"
    assert formatar_moeda(48.75) == "R$ 48,75"
    assert formatar_data("2025-04-15") == "15/04/2025"
    assert formatar_data("2025-04-15T10:30:00") == "15/04/2025"
    assert formatar_data(None) == ""
