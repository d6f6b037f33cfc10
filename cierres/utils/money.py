# cierres/utils/money.py

import math
import re
from typing import Pattern, Union

# prefijo numérico como lo acepta parseFloat: "123.4abc" -> 123.4
_NUM_PREFIX = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_money(value) -> int:
    """
    Convierte montos del POS colombiano a pesos enteros.
    El POS usa COMAS como separador de miles:
      '$300,000' -> 300000
      '$1,121,000' -> 1121000
      '$-37,150' -> -37150
      '1.234' -> 1234 (punto con más de 2 dígitos detrás = miles)
      '1.23' -> 1 (redondeo)
    Nunca lanza excepción: None, '', '-' o basura -> 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return 0
        return _round_half_up(abs(value)) * (-1 if value < 0 else 1)

    s = str(value).strip()
    if s in ("", "-"):
        return 0

    # Quitar $ y espacios
    s = s.replace("$", "")
    s = re.sub(r"\s", "", s)

    negative = False
    if s.startswith("-"):
        negative = True
        s = s[1:]

    # Comas = miles
    s = s.replace(",", "")

    # Punto con grupo final de más de 2 dígitos = miles también
    if "." in s and len(s.split(".")[-1]) > 2:
        s = s.replace(".", "")

    m = _NUM_PREFIX.match(s)
    if not m:
        return 0

    try:
        num = float(m.group(0))
    except ValueError:
        return 0
    if math.isinf(num):
        return 0

    n = _round_half_up(num)
    return -n if negative else n


def _round_half_up(num: float) -> int:
    return int(math.floor(num + 0.5))


def extract_money(text: str, pattern: Union[str, Pattern]) -> int:
    """
    Aplica parse_money al primer grupo capturado por el regex. Sin match -> 0.
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern, re.IGNORECASE)
    m = pattern.search(text or "")
    if not m:
        return 0
    return parse_money(m.group(1))


def format_money(n) -> str:
    """
    1234567 -> '1,234,567' (valor absoluto, sin signo ni $)
    """
    return f"{abs(int(round(n or 0))):,}"
