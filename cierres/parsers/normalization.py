# cierres/parsers/normalization.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cierres.utils.dates import MESES_ES
from cierres.utils.money import parse_money


DEFAULT_MARKERS: Tuple[Tuple[str, str], ...] = (
    ("CIERRE", "CIERRE DE CAJA"),
    ("DECLARADO", "DINERO DECLARADO"),
    ("APERTURA", "APERTURA DE CAJA"),
)


@dataclass(frozen=True)
class ParserTables:
    """
    Tablas de patrones del parser (marcadores, meses, aliases, puntos).
    Inmutables: se construyen una vez desde la config y se inyectan.
    """
    markers: Tuple[Tuple[str, str], ...] = DEFAULT_MARKERS
    months: Mapping[str, int] = field(default_factory=lambda: MappingProxyType(dict(MESES_ES)))
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    puntos: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ParserTables":
        aliases = {str(k).lower().strip(): v for k, v in (config.get("PUNTOS_ALIASES") or {}).items()}
        return cls(
            aliases=MappingProxyType(aliases),
            puntos=tuple(config.get("PUNTOS") or ()),
        )

    def marker_regex(self) -> re.Pattern:
        return re.compile("|".join(re.escape(phrase) for _, phrase in self.markers), re.IGNORECASE)


def default_tables() -> ParserTables:
    from cierres.config import Config

    return ParserTables.from_config(
        {"PUNTOS_ALIASES": Config.PUNTOS_ALIASES, "PUNTOS": Config.PUNTOS}
    )


def resolve_punto_alias(nombre: Optional[str], tables: ParserTables) -> Optional[str]:
    """
    Nombre de negocio (como viene del POS) -> nombre estándar.
    Orden:
      1) alias exacto
      2) substring en cualquier dirección; gana el alias más largo
      3) nombre estándar (case-insensitive)
      4) el nombre tal cual, para que el admin lo vea sin corregir
    """
    if not nombre:
        return None
    key = nombre.lower().strip()
    if not key:
        return None

    if key in tables.aliases:
        return tables.aliases[key]

    best: Optional[str] = None
    for ak in tables.aliases:
        if ak in key or key in ak:
            if best is None or len(ak) > len(best):
                best = ak
    if best is not None:
        return tables.aliases[best]

    for p in tables.puntos:
        if key == p.lower():
            return p

    return nombre


_REPORTES = re.compile(r"REPORTES\s+\w+:\s*(.+)", re.IGNORECASE)
_HEADER_LINE = re.compile(r"^\[")
PUNTO_CANDIDATE_LINES = 5


def detect_punto(text: str, tables: ParserTables) -> Optional[str]:
    """
    Punto del bloque: primero el header "REPORTES GLORIETA: LA GLORIETA EXPRESS",
    si no, la primera que resuelva entre las primeras 5 líneas útiles
    (sin vacías, headers WhatsApp ni marcadores).
    """
    m = _REPORTES.search(text)
    if m:
        nombre = m.group(1).split("\n")[0].strip()
        return resolve_punto_alias(nombre, tables)

    marker_rx = tables.marker_regex()
    candidates = 0
    for raw in text.split("\n"):
        line = raw.strip()
        if not line or _HEADER_LINE.match(line) or marker_rx.search(line):
            continue
        candidates += 1
        if candidates > PUNTO_CANDIDATE_LINES:
            break
        resolved = resolve_punto_alias(line, tables)
        if resolved:
            return resolved

    return None


def is_known_punto(punto: Optional[str], tables: ParserTables) -> bool:
    return bool(punto) and punto in tables.puntos


def coerce_formas_pago(value: Any) -> Dict[str, int]:
    """
    Valida formas de pago en el borde (JSON de BD / request): {nombre: monto}.
    Claves vacías o no-string se descartan; montos pasan por parse_money.
    """
    if not isinstance(value, Mapping):
        return {}
    out: Dict[str, int] = {}
    for k, v in value.items():
        name = str(k).strip() if k is not None else ""
        if not name:
            continue
        out[name] = parse_money(v)
    return out


def coerce_gastos_detalle(value: Any) -> List[Dict[str, Any]]:
    """
    Valida detalle de gastos: lista de {categoria, monto, cantidad}.
    Entradas que no son dict se descartan.
    """
    if not isinstance(value, (list, tuple)):
        return []
    out: List[Dict[str, Any]] = []
    for g in value:
        if isinstance(g, Mapping):
            categoria = str(g.get("categoria") or "").strip()
            monto = parse_money(g.get("monto"))
            try:
                cantidad = int(g.get("cantidad") or 0)
            except (TypeError, ValueError):
                cantidad = 0
        else:
            categoria = str(getattr(g, "categoria", "") or "").strip()
            if not categoria:
                continue
            monto = parse_money(getattr(g, "monto", 0))
            cantidad = int(getattr(g, "cantidad", 0) or 0)
        if not categoria:
            continue
        out.append({"categoria": categoria, "monto": monto, "cantidad": cantidad})
    return out
