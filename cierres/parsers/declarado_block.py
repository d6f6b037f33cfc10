# cierres/parsers/declarado_block.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from cierres.parsers.base import BlockParser
from cierres.parsers.normalization import detect_punto
from cierres.utils.money import extract_money, parse_money

_ID = re.compile(r"ID:\s*(\d+)", re.IGNORECASE)

_EFECTIVO_SISTEMA = re.compile(r"Efectivo Sistema:\s*\$?([\d,.\-]+)", re.IGNORECASE)
_EFECTIVO_DECLARADO = re.compile(r"Efectivo Declarado:\s*\$?([\d,.\-]+)", re.IGNORECASE)
_EFECTIVO_DIF = re.compile(r"Efectivo Diferencia\s*\$?([\-]?[\d,.\-]+)", re.IGNORECASE)
_TARJETAS_SISTEMA = re.compile(r"Tarjetas y Otros Sistema:\s*\$?([\d,.\-]+)", re.IGNORECASE)
_TARJETAS_DECLARADO = re.compile(r"Tarjetas y Otros Declarado:\s*\$?([\d,.\-]+)", re.IGNORECASE)
_TARJETAS_DIF = re.compile(r"Tarjetas y Otros Diferencia\s*\$?([\-]?[\d,.\-]+)", re.IGNORECASE)

_SOBRANTE = re.compile(r"SOBRANTE\s*\$?([\d,.\-]+)", re.IGNORECASE)
_FALTANTE = re.compile(r"FALTANTE\s*\$?([\d,.\-]+)", re.IGNORECASE)


@dataclass
class DeclaradoData:
    punto: Optional[str] = None
    id_cierre: Optional[int] = None
    efectivo_sistema: int = 0
    efectivo_declarado: int = 0
    efectivo_diferencia: int = 0
    tarjetas_otros_sistema: int = 0
    tarjetas_otros_declarado: int = 0
    tarjetas_otros_diferencia: int = 0
    sobrante_faltante_monto: int = 0
    sobrante_faltante_tipo: str = "OK"  # SOBRANTE / FALTANTE / OK


class DeclaradoBlockParser(BlockParser):
    kind = "DECLARADO"

    def parse(self, text: str) -> DeclaradoData:
        d = DeclaradoData()
        d.punto = detect_punto(text, self.tables)

        m = _ID.search(text)
        d.id_cierre = int(m.group(1)) if m else None

        d.efectivo_sistema = extract_money(text, _EFECTIVO_SISTEMA)
        d.efectivo_declarado = extract_money(text, _EFECTIVO_DECLARADO)
        d.efectivo_diferencia = extract_money(text, _EFECTIVO_DIF)
        d.tarjetas_otros_sistema = extract_money(text, _TARJETAS_SISTEMA)
        d.tarjetas_otros_declarado = extract_money(text, _TARJETAS_DECLARADO)
        d.tarjetas_otros_diferencia = extract_money(text, _TARJETAS_DIF)

        # El POS trae la línea SOBRANTE o FALTANTE; si no, se deriva de las diferencias
        sobrante = _SOBRANTE.search(text)
        faltante = _FALTANTE.search(text)
        if sobrante:
            d.sobrante_faltante_monto = parse_money(sobrante.group(1))
            d.sobrante_faltante_tipo = "SOBRANTE"
        elif faltante:
            d.sobrante_faltante_monto = -parse_money(faltante.group(1))
            d.sobrante_faltante_tipo = "FALTANTE"
        else:
            total = d.efectivo_diferencia + d.tarjetas_otros_diferencia
            d.sobrante_faltante_monto = total
            if total > 0:
                d.sobrante_faltante_tipo = "SOBRANTE"
            elif total < 0:
                d.sobrante_faltante_tipo = "FALTANTE"
            else:
                d.sobrante_faltante_tipo = "OK"

        return d
