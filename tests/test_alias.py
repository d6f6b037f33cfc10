# tests/test_alias.py

from cierres.config import Config
from cierres.parsers.normalization import (
    ParserTables, coerce_formas_pago, coerce_gastos_detalle, detect_punto, resolve_punto_alias,
)

TABLES = ParserTables.from_config({"PUNTOS_ALIASES": Config.PUNTOS_ALIASES, "PUNTOS": Config.PUNTOS})


def test_exact_alias():
    assert resolve_punto_alias("LA GLORIETA EXPRESS", TABLES) == "La Glorieta Express"
    assert resolve_punto_alias("  Salomé Heladería ", TABLES) == "Salomé Heladería"


def test_longest_substring_wins():
    # contiene "glorieta" y "la glorieta express"
    assert resolve_punto_alias("Reportes La Glorieta Express Centro", TABLES) == "La Glorieta Express"
    assert resolve_punto_alias("Glorieta", TABLES) == "La Glorieta"


def test_unknown_name_passes_through():
    assert resolve_punto_alias("Panaderia Central", TABLES) == "Panaderia Central"
    assert resolve_punto_alias("", TABLES) is None
    assert resolve_punto_alias(None, TABLES) is None


def test_detect_punto_from_first_lines():
    text = "[9/2/2026, 7:19:41 PM] X: CIERRE DE CAJA\n\nSalome Restaurante\nID: 4"
    assert detect_punto(text, TABLES) == "Salomé Restaurante"


def test_detect_punto_skips_blank_and_header_lines():
    text = "[9/2/2026, 7:19:41 PM] X: CIERRE DE CAJA\n\n\n\n\nSalome Restaurante\nID: 4"
    assert detect_punto(text, TABLES) == "Salomé Restaurante"


def test_detect_punto_uses_table_markers():
    tables = ParserTables(
        markers=(("CIERRE", "CUADRE FINAL"),),
        aliases=TABLES.aliases,
        puntos=TABLES.puntos,
    )
    text = "Cuadre final\nSalome Heladeria\nID: 9"
    assert detect_punto(text, tables) == "Salomé Heladería"
    assert detect_punto(text, TABLES) == "Cuadre final"


def test_coerce_json_fields():
    assert coerce_formas_pago({"Efectivo": "$1,000", "": 5, None: 3}) == {"Efectivo": 1000}
    assert coerce_formas_pago(["x"]) == {}
    assert coerce_gastos_detalle([{"categoria": "General", "monto": "$-2,000", "cantidad": "2"}, "x"]) == [
        {"categoria": "General", "monto": -2000, "cantidad": 2}
    ]
    assert coerce_gastos_detalle(None) == []
