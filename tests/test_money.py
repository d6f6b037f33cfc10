# tests/test_money.py

from cierres.utils.money import extract_money, format_money, parse_money


def test_parse_money_pos_formats():
    assert parse_money("$300,000") == 300000
    assert parse_money("$1,121,000") == 1121000
    assert parse_money("$-37,150") == -37150
    assert parse_money("1.234") == 1234
    assert parse_money("1.23") == 1
    assert parse_money("$ 45 000") == 45000


def test_parse_money_never_raises():
    for garbage in (None, "", "-", "abc", "$", True, float("nan"), float("inf")):
        assert parse_money(garbage) == 0


def test_parse_money_rounds_half_up():
    assert parse_money(2.5) == 3
    assert parse_money("0.5") == 1
    assert parse_money(-2.5) == -3


def test_extract_money_first_group():
    text = "Efectivo Inicial: $300,000\nVentas en Efectivo: $450,000"
    assert extract_money(text, r"Ventas en Efectivo:\s*\$?([\d,.\-]+)") == 450000
    assert extract_money(text, r"Propinas:\s*\$?([\d,.\-]+)") == 0


def test_format_money():
    assert format_money(1234567) == "1,234,567"
    assert format_money(-3850) == "3,850"
    assert format_money(None) == "0"


def test_format_then_parse_gives_back_the_amount():
    for n in (0, 7, 999, 1000, 3850, 391850, 1121000, 10**9 + 1, 10**12):
        assert parse_money(format_money(n)) == n
