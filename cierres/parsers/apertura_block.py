# cierres/parsers/apertura_block.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from cierres.parsers.base import BlockParser
from cierres.parsers.normalization import detect_punto
from cierres.utils.money import extract_money

_USUARIO = re.compile(r"Usuario:\s*(.+)", re.IGNORECASE)
_VALOR = re.compile(r"Valor:\s*\$?([\d,.\-]+)", re.IGNORECASE)


@dataclass
class AperturaData:
    punto: Optional[str] = None
    usuario: str = ""
    valor: int = 0


class AperturaBlockParser(BlockParser):
    kind = "APERTURA"

    def parse(self, text: str) -> AperturaData:
        m = _USUARIO.search(text)
        return AperturaData(
            punto=detect_punto(text, self.tables),
            usuario=m.group(1).strip() if m else "",
            valor=extract_money(text, _VALOR),
        )
