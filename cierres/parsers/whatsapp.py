# cierres/parsers/whatsapp.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from cierres.parsers.apertura_block import AperturaBlockParser, AperturaData
from cierres.parsers.cierre_block import CierreBlockParser, CierreData
from cierres.parsers.declarado_block import DeclaradoBlockParser, DeclaradoData
from cierres.parsers.normalization import ParserTables, default_tables, is_known_punto
from cierres.parsers.segmenter import split_into_blocks
from cierres.utils.dates import today_iso
from cierres.utils.hashing import hash_record
from cierres.utils.logging import get_logger

logger = get_logger("parser_whatsapp")

CombineKey = Tuple[str, Union[int, str]]


@dataclass
class ParsedCierre:
    punto: str
    id_cierre: int
    caja: Optional[str]
    responsable: Optional[str]
    fecha: str
    hora_inicio: Optional[str]
    hora_fin: Optional[str]

    # Efectivo
    efectivo_inicial: int = 0
    ventas_efectivo: int = 0
    gastos_efectivo: int = 0
    traslados_caja: int = 0
    abonos_efectivo: int = 0
    efectivo_total: int = 0
    propinas: int = 0
    domicilios: int = 0
    total_efectivo_sistema: int = 0

    # Ventas
    ingreso_ventas: int = 0
    descuentos: int = 0
    creditos: int = 0
    total_ingresos: int = 0
    total_gastos: int = 0

    formas_pago: Dict[str, int] = field(default_factory=dict)
    gastos_detalle: List[dict] = field(default_factory=list)

    # Dinero declarado
    efectivo_sistema: int = 0
    efectivo_declarado: int = 0
    efectivo_diferencia: int = 0
    tarjetas_otros_sistema: int = 0
    tarjetas_otros_declarado: int = 0
    tarjetas_otros_diferencia: int = 0
    sobrante_faltante_monto: int = 0
    sobrante_faltante_tipo: str = "SIN_DECLARADO"  # SOBRANTE / FALTANTE / OK / SIN_DECLARADO

    # Apertura siguiente turno
    apertura_usuario: Optional[str] = None
    apertura_valor: int = 0

    hash_registro: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ParseResult:
    success: bool = False
    cierres: List[ParsedCierre] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "cierres": [c.to_dict() for c in self.cierres],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def key_label(key: CombineKey) -> str:
    punto, ident = key
    if isinstance(ident, int):
        return f"{punto} (ID {ident})"
    return f"{punto} ({ident})"


def build_combined_record(
    cierre: CierreData,
    declarado: Optional[DeclaradoData],
    apertura: Optional[AperturaData],
) -> ParsedCierre:
    """
    CIERRE + DINERO DECLARADO (misma key) + APERTURA (mismo punto).
    Sin declarado: tipo SIN_DECLARADO y todo lo declarado en 0.
    El hash se calcula al final, sobre el registro ya combinado.
    """
    record = ParsedCierre(
        punto=cierre.punto or "",
        id_cierre=cierre.id_cierre or 0,
        caja=cierre.caja or None,
        responsable=cierre.responsable or None,
        fecha=cierre.fecha or today_iso(),
        hora_inicio=cierre.inicio or None,
        hora_fin=cierre.fin or None,
        efectivo_inicial=cierre.efectivo_inicial,
        ventas_efectivo=cierre.ventas_efectivo,
        gastos_efectivo=cierre.gastos_efectivo,
        traslados_caja=cierre.traslados_caja,
        abonos_efectivo=cierre.abonos_efectivo,
        efectivo_total=cierre.efectivo_total,
        propinas=cierre.propinas,
        domicilios=cierre.domicilios,
        total_efectivo_sistema=cierre.total_efectivo_sistema,
        ingreso_ventas=cierre.ingreso_ventas,
        descuentos=cierre.descuentos,
        creditos=cierre.creditos,
        total_ingresos=cierre.total_ingresos,
        total_gastos=cierre.total_gastos,
        formas_pago=dict(cierre.formas_pago),
        gastos_detalle=[g.to_dict() for g in cierre.gastos_detalle],
    )

    if declarado:
        record.efectivo_sistema = declarado.efectivo_sistema
        record.efectivo_declarado = declarado.efectivo_declarado
        record.efectivo_diferencia = declarado.efectivo_diferencia
        record.tarjetas_otros_sistema = declarado.tarjetas_otros_sistema
        record.tarjetas_otros_declarado = declarado.tarjetas_otros_declarado
        record.tarjetas_otros_diferencia = declarado.tarjetas_otros_diferencia
        record.sobrante_faltante_monto = declarado.sobrante_faltante_monto
        record.sobrante_faltante_tipo = declarado.sobrante_faltante_tipo

    if apertura:
        record.apertura_usuario = apertura.usuario or None
        record.apertura_valor = apertura.valor

    record.hash_registro = hash_record(record)
    return record


def _cierre_warnings(key: CombineKey, cierre: CierreData, tables: ParserTables) -> List[str]:
    label = key_label(key)
    out: List[str] = []
    if not cierre.punto:
        out.append(f"{label}: no se pudo detectar el punto")
    elif tables.puntos and not is_known_punto(cierre.punto, tables):
        out.append(f"{label}: punto '{cierre.punto}' no reconocido, revisar alias")
    if cierre.id_cierre is None:
        out.append(f"{label}: no se encontró el ID del cierre")
    if cierre.fecha_inferida:
        out.append(f"{label}: fecha no encontrada, se usó la fecha de hoy ({cierre.fecha})")
    if cierre.efectivo_total == 0 and cierre.total_ingresos == 0:
        out.append(f"{label}: EFECTIVO y TOTAL INGRESOS en 0, revisar formato del mensaje")
    return out


def parse_whatsapp_text(raw_text: Optional[str], tables: Optional[ParserTables] = None) -> ParseResult:
    """
    El admin pega 1 o varios mensajes (CIERRE DE CAJA, DINERO DECLARADO, APERTURA)
    de uno o varios negocios:
      1) divide el texto en bloques por tipo
      2) extrae campos de cada bloque
      3) combina CIERRE + DINERO DECLARADO por (punto, ID)
    """
    result = ParseResult()
    tables = tables or default_tables()

    if not raw_text or not raw_text.strip():
        result.errors.append("Texto vacío")
        return result

    blocks = split_into_blocks(raw_text, tables)
    if not blocks:
        result.errors.append(
            "No se encontraron mensajes CIERRE DE CAJA, DINERO DECLARADO ni APERTURA DE CAJA"
        )
        return result

    parsers = {
        "CIERRE": CierreBlockParser(tables),
        "DECLARADO": DeclaradoBlockParser(tables),
        "APERTURA": AperturaBlockParser(tables),
    }

    cierres: Dict[CombineKey, CierreData] = {}
    declarados: Dict[CombineKey, DeclaradoData] = {}
    aperturas: Dict[str, AperturaData] = {}

    for i, block in enumerate(blocks):
        if not block.text.strip():
            result.warnings.append(f"Bloque {i} ({block.kind}) vacío, ignorado")
            continue

        try:
            data = parsers[block.kind].parse(block.text)
        except Exception as e:
            result.warnings.append(f"Error parseando bloque {i}: {e}")
            logger.exception(f"Block parse error index={i} kind={block.kind}")
            continue

        if block.kind == "CIERRE":
            key = (data.punto or "UNKNOWN", data.id_cierre if data.id_cierre is not None else f"bloque {i}")
            cierres[key] = data
        elif block.kind == "DECLARADO":
            key = (data.punto or "UNKNOWN", data.id_cierre if data.id_cierre is not None else f"bloque {i}")
            declarados[key] = data
        else:
            # la última apertura del punto gana
            aperturas[data.punto or "UNKNOWN"] = data

    for key, cierre in cierres.items():
        declarado = declarados.get(key)
        apertura = aperturas.get(cierre.punto) if cierre.punto else None

        result.warnings.extend(_cierre_warnings(key, cierre, tables))
        result.cierres.append(build_combined_record(cierre, declarado, apertura))

    for key in declarados:
        if key not in cierres:
            result.warnings.append(
                "DINERO DECLARADO sin CIERRE DE CAJA correspondiente: " + key_label(key)
            )

    result.success = len(result.cierres) > 0
    if not result.success and not result.errors:
        result.errors.append("No se encontraron cierres válidos en el texto")

    logger.info(
        f"Parse done blocks={len(blocks)} cierres={len(result.cierres)} "
        f"warnings={len(result.warnings)} errors={len(result.errors)}"
    )
    return result
