# cierres/parsers/segmenter.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

from cierres.parsers.normalization import ParserTables

# Header de WhatsApp exportado: [9/2/2026, 7:19:41 PM]
WHATSAPP_HEADER = re.compile(r"^\[[\d/,\s:APMapm]+\]")

LOOKBACK_CHARS = 300


@dataclass(frozen=True)
class Block:
    kind: str   # CIERRE / DECLARADO / APERTURA
    text: str
    start: int
    end: int


def find_block_start(text: str, match_index: int) -> int:
    """
    Inicio del mensaje que contiene el marcador: la última línea con header
    WhatsApp dentro de los 300 caracteres previos; si no hay, la línea
    anterior a la del marcador.
    """
    search_from = max(0, match_index - LOOKBACK_CHARS)
    before = text[search_from:match_index]
    lines = before.split("\n")

    offsets = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line) + 1

    for i in range(len(lines) - 1, -1, -1):
        if WHATSAPP_HEADER.match(lines[i].strip()):
            return search_from + offsets[i]

    p1 = text.rfind("\n", 0, match_index)
    p2 = text.rfind("\n", 0, p1) if p1 > 0 else -1
    return max(0, p2 + 1)


def split_into_blocks(text: str, tables: ParserTables) -> List[Block]:
    """
    Divide el texto pegado en bloques tipados, ordenados por posición.
    Cada bloque va desde su inicio hasta el inicio del siguiente (o el final);
    start/end cubren el texto sin huecos y text va sin espacios en los bordes.
    Sin marcadores -> lista vacía.
    """
    if not text:
        return []

    markers: List[Tuple[int, int, str]] = []
    for kind, phrase in tables.markers:
        for m in re.finditer(re.escape(phrase), text, re.IGNORECASE):
            markers.append((find_block_start(text, m.start()), m.start(), kind))

    # mismo inicio: el texto queda para el marcador que aparece primero
    markers.sort(key=lambda t: (t[0], -t[1]))

    blocks: List[Block] = []
    for i, (start, _, kind) in enumerate(markers):
        end = markers[i + 1][0] if i + 1 < len(markers) else len(text)
        blocks.append(Block(kind=kind, text=text[start:end].strip(), start=start, end=end))

    return blocks
