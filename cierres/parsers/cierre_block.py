# cierres/parsers/cierre_block.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from cierres.parsers.base import BlockParser
from cierres.parsers.normalization import detect_punto
from cierres.utils.dates import format_date_iso, parse_date, today_iso
from cierres.utils.money import extract_money, parse_money

_MONTO = r"\s*\$?([\d,.\-]+)"


def _rx(label: str) -> re.Pattern:
    return re.compile(label + _MONTO, re.IGNORECASE)


# campo -> regex del cuadre / datos de ventas
MONEY_FIELDS = {
    "efectivo_inicial": _rx(r"Efectivo Inicial:"),
    "ventas_efectivo": _rx(r"Ventas en Efectivo:"),
    "gastos_efectivo": _rx(r"Gastos en Efectivo:"),
    "traslados_caja": _rx(r"Traslados de caja:"),
    "abonos_efectivo": _rx(r"Abonos en Efectivo:"),
    "efectivo_total": _rx(r"\(=\)\s*EFECTIVO"),
    "propinas": _rx(r"Propinas:"),
    "domicilios": _rx(r"Domicilios:"),
    "total_efectivo_sistema": _rx(r"TOTAL EFECTIVO"),
    "ingreso_ventas": _rx(r"Ingreso de Ventas:"),
    "descuentos": _rx(r"Descuentos:"),
    "creditos": _rx(r"Creditos:"),
    "total_ingresos": _rx(r"TOTAL INGRESOS"),
}

_ID = re.compile(r"ID:\s*(\d+)", re.IGNORECASE)
_CAJA = re.compile(r"CAJA:\s*(.+)", re.IGNORECASE)
_USUARIO = re.compile(r"Usuario:\s*(.+)", re.IGNORECASE)
_INICIO = re.compile(r"Inicio:\s*(.+)", re.IGNORECASE)
_FIN = re.compile(r"Fin:\s*(.+)", re.IGNORECASE)
_FECHA = re.compile(
    r"Fecha:\s*\n?\s*(\d{1,2}\s+\w+\s+\d{4}\s*,?\s*[\d:]+\s*(?:am|pm)?)",
    re.IGNORECASE,
)
# total gastos de DATOS DE VENTAS, no el del cuadre
_TOTAL_GASTOS = re.compile(r"DATOS DE VENTAS[\s\S]*?\(-\)\s*Gastos:" + _MONTO, re.IGNORECASE)

_FORMAS_PAGO = re.compile(r"FORMAS DE PAGO:([\s\S]*?)(?:▪️|\Z)", re.IGNORECASE)
_FORMA_LINE = re.compile(r"^(.+?):\s*\$?([\d,.\-]+)")
_GASTOS = re.compile(r"▪️\s*GASTOS:([\s\S]*?)(?:▪️|Fecha:|\Z)", re.IGNORECASE)
_GASTO_LINE = re.compile(r"^(.+?):\s*\$?-?([\d,.\-]+)\s*\((\d+)\)")
_NO_DISPONIBLE = re.compile(r"No disponible", re.IGNORECASE)


@dataclass
class GastoDetalle:
    categoria: str
    monto: int
    cantidad: int

    def to_dict(self) -> dict:
        return {"categoria": self.categoria, "monto": self.monto, "cantidad": self.cantidad}


@dataclass
class CierreData:
    punto: Optional[str] = None
    id_cierre: Optional[int] = None
    caja: str = ""
    responsable: str = ""
    inicio: str = ""
    fin: str = ""
    fecha: str = ""
    fecha_inferida: bool = False

    efectivo_inicial: int = 0
    ventas_efectivo: int = 0
    gastos_efectivo: int = 0
    traslados_caja: int = 0
    abonos_efectivo: int = 0
    efectivo_total: int = 0
    propinas: int = 0
    domicilios: int = 0
    total_efectivo_sistema: int = 0

    ingreso_ventas: int = 0
    descuentos: int = 0
    creditos: int = 0
    total_ingresos: int = 0
    total_gastos: int = 0

    formas_pago: Dict[str, int] = field(default_factory=dict)
    gastos_detalle: List[GastoDetalle] = field(default_factory=list)


def _first(rx: re.Pattern, text: str) -> str:
    m = rx.search(text)
    return m.group(1).strip() if m else ""


def parse_formas_pago(text: str) -> Dict[str, int]:
    """
    Sección "FORMAS DE PAGO:" -> {forma: monto}. Montos en cero se omiten.
    """
    result: Dict[str, int] = {}
    section = _FORMAS_PAGO.search(text)
    if not section:
        return result

    for raw in section.group(1).split("\n"):
        line = raw.strip()
        if not line:
            continue
        m = _FORMA_LINE.match(line)
        if m:
            forma = m.group(1).strip()
            monto = parse_money(m.group(2))
            if forma and monto != 0:
                result[forma] = monto
    return result


def parse_gastos_detalle(text: str) -> List[GastoDetalle]:
    """
    Sección "▪️ GASTOS:" con líneas tipo "General:  $-29,500 (1)".
    "No disponible" -> lista vacía.
    """
    section = _GASTOS.search(text)
    if not section:
        return []

    content = section.group(1).strip()
    if _NO_DISPONIBLE.search(content):
        return []

    result: List[GastoDetalle] = []
    for raw in content.split("\n"):
        line = raw.strip()
        if not line:
            continue
        m = _GASTO_LINE.match(line)
        if m:
            result.append(GastoDetalle(
                categoria=m.group(1).strip(),
                monto=parse_money(m.group(2)),
                cantidad=int(m.group(3)),
            ))
    return result


class CierreBlockParser(BlockParser):
    kind = "CIERRE"

    def parse(self, text: str) -> CierreData:
        d = CierreData()
        d.punto = detect_punto(text, self.tables)

        id_str = _first(_ID, text)
        d.id_cierre = int(id_str) if id_str else None

        d.caja = _first(_CAJA, text)
        d.responsable = _first(_USUARIO, text)
        d.inicio = _first(_INICIO, text)
        d.fin = _first(_FIN, text)

        # Fecha: línea "Fecha:" -> Fin -> hoy
        fecha_str = _first(_FECHA, text)
        if fecha_str:
            parsed = parse_date(fecha_str, self.tables.months)
            d.fecha = format_date_iso(parsed) if parsed else ""
        elif d.fin:
            parsed = parse_date(d.fin, self.tables.months)
            d.fecha = format_date_iso(parsed) if parsed else ""
        if not d.fecha:
            d.fecha = today_iso()
            d.fecha_inferida = True

        for name, rx in MONEY_FIELDS.items():
            setattr(d, name, extract_money(text, rx))
        d.total_gastos = extract_money(text, _TOTAL_GASTOS)

        d.formas_pago = parse_formas_pago(text)
        d.gastos_detalle = parse_gastos_detalle(text)
        return d
