# cierres/utils/dates.py

import re
from datetime import date, datetime
from typing import Dict, Mapping, Optional
from zoneinfo import ZoneInfo

# Meses del POS (español completo) + abreviaturas en inglés que a veces trae
MESES_ES: Dict[str, int] = {
    "enero": 1, "febrero": 2, "marzo": 3, "abril": 4,
    "mayo": 5, "junio": 6, "julio": 7, "agosto": 8,
    "septiembre": 9, "octubre": 10, "noviembre": 11, "diciembre": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

MESES_ABREV_ES = ["ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic"]

DEFAULT_TIMEZONE = "America/Bogota"

_POS_FMT = re.compile(
    r"(\d{1,2})\s+(\w+)\s+(\d{4})\s*,?\s*(\d{1,2}):(\d{2}):(\d{2})\s*(am|pm)?",
    re.IGNORECASE,
)
_DMY_FMT = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_YMD_FMT = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def parse_date(value, months: Optional[Mapping[str, int]] = None) -> Optional[datetime]:
    """
    Convierte fechas del POS/WhatsApp a datetime. Si no puede, devuelve None.
    Formatos:
      - "09 Febrero 2026 , 7:19:41 pm" (POS)
      - "09 Feb 2026, 02:57:49 PM" (POS corto)
      - "DD/MM/YYYY" o "DD-MM-YYYY"
      - "YYYY-MM-DD"
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    s = str(value).strip()
    if not s:
        return None

    months = months if months is not None else MESES_ES

    try:
        m = _POS_FMT.search(s)
        if m:
            month_str = m.group(2).lower()
            month = months.get(month_str)
            if month is None:
                month = months.get(month_str[:3])
            if month is None:
                return None

            hours = int(m.group(4))
            ampm = (m.group(7) or "").lower()
            if ampm == "pm" and hours < 12:
                hours += 12
            if ampm == "am" and hours == 12:
                hours = 0

            return datetime(
                int(m.group(3)), month, int(m.group(1)),
                hours, int(m.group(5)), int(m.group(6)),
            )

        m = _DMY_FMT.match(s)
        if m:
            return datetime(int(m.group(3)), int(m.group(2)), int(m.group(1)))

        m = _YMD_FMT.match(s)
        if m:
            return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        # día/mes/hora fuera de rango
        return None

    return None


def format_date_iso(d) -> str:
    """2026-02-09"""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_date_display(d) -> str:
    """09-feb-2026"""
    return f"{d.day:02d}-{MESES_ABREV_ES[d.month - 1]}-{d.year}"


def display_from_iso(fecha_iso: str) -> str:
    d = parse_date(fecha_iso)
    return format_date_display(d) if d else (fecha_iso or "")


def now_local(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    return datetime.now(ZoneInfo(tz_name))


def today_iso(tz_name: str = DEFAULT_TIMEZONE) -> str:
    return format_date_iso(now_local(tz_name))
