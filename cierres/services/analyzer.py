# cierres/services/analyzer.py

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List

from cierres.models import Cierre
from cierres.services.evidence import EvidenceBatchOrchestrator
from cierres.services.storage import collect_media_files, evidencia_resumen
from cierres.services.synthesis import ParsedIAResponse, build_mensaje_ia, parse_ia_response
from cierres.utils.logging import get_logger
from cierres.utils.money import format_money

logger = get_logger("analyzer")


@dataclass
class AnalysisOutcome:
    resultado: str
    explicacion: str
    accion: str
    mensaje: str
    parsed: ParsedIAResponse
    evidencia: Dict[str, dict]
    total_archivos: int
    lotes: int


def otros_cierres_del_dia(cierre: Cierre) -> List[Cierre]:
    return (
        Cierre.query
        .filter(Cierre.punto == cierre.punto, Cierre.fecha == cierre.fecha, Cierre.id != cierre.id)
        .order_by(Cierre.hora_inicio.asc())
        .all()
    )


def build_contexto_cierre(cierre: Cierre, evidencia: Dict[str, dict], otros: List[Cierre]) -> str:
    fmt = format_money

    ctx = "=== DATOS DEL CIERRE DE CAJA ===\n"
    ctx += f"Punto: {cierre.punto}\nFecha: {cierre.fecha}\nResponsable: {cierre.responsable or 'N/A'}\n"
    ctx += f"ID Cierre: {cierre.id_cierre}\nHora Inicio: {cierre.hora_inicio or 'N/A'}\nHora Fin: {cierre.hora_fin or 'N/A'}\n\n"

    ctx += "--- CUADRE DE CAJA ---\n"
    ctx += f"Efectivo Inicial: ${fmt(cierre.efectivo_inicial)}\nVentas en Efectivo: ${fmt(cierre.ventas_efectivo)}\n"
    ctx += f"Gastos en Efectivo: ${fmt(cierre.gastos_efectivo)}\nTraslados de Caja: ${fmt(cierre.traslados_caja)}\n"
    ctx += f"Total Efectivo Sistema: ${fmt(cierre.total_efectivo_sistema)}\n"
    ctx += f"Propinas: ${fmt(cierre.propinas)}\n\n"

    ctx += "--- VENTAS ---\n"
    ctx += f"Ingreso Ventas: ${fmt(cierre.ingreso_ventas)}\nTotal Ingresos: ${fmt(cierre.total_ingresos)}\n"
    ctx += f"Total Gastos: ${fmt(cierre.total_gastos)}\n"
    if cierre.formas_pago:
        ctx += f"Formas de Pago: {json.dumps(cierre.formas_pago, ensure_ascii=False)}\n"
    if cierre.gastos_detalle:
        ctx += f"Gastos Detalle: {json.dumps(cierre.gastos_detalle, ensure_ascii=False)}\n"

    ctx += "\n--- DINERO DECLARADO ---\n"
    ctx += f"Efectivo Sistema: ${fmt(cierre.efectivo_sistema)}\nEfectivo Declarado: ${fmt(cierre.efectivo_declarado)}\n"
    ctx += f"Efectivo Diferencia: ${fmt(cierre.efectivo_diferencia)}\n"
    ctx += f"Tarjetas Sistema: ${fmt(cierre.tarjetas_otros_sistema)}\nTarjetas Declarado: ${fmt(cierre.tarjetas_otros_declarado)}\n"
    ctx += f"Tarjetas Diferencia: ${fmt(cierre.tarjetas_otros_diferencia)}\n"
    ctx += f"Resultado: {cierre.sobrante_faltante_tipo} ${fmt(abs(cierre.sobrante_faltante_monto or 0))}\n"
    if cierre.apertura_valor:
        ctx += f"Base dejada al siguiente turno (apertura): ${fmt(cierre.apertura_valor)}"
        ctx += f" ({cierre.apertura_usuario})\n" if cierre.apertura_usuario else "\n"

    if cierre.efectivo_contado_sobre is not None:
        ctx += "\n--- CONFIRMACIÓN DE SOBRE ---\n"
        ctx += f"Contado: ${fmt(cierre.efectivo_contado_sobre)}\nDiferencia: ${fmt(cierre.sobre_diferencia or 0)}\n"
        ctx += f"Estado: {cierre.sobre_estado}\n"
        if cierre.sobre_notas:
            ctx += f"Notas: {cierre.sobre_notas}\n"

    if cierre.observaciones_admin:
        ctx += "\n--- OBSERVACIONES DEL ADMINISTRADOR ---\n" + cierre.observaciones_admin + "\n"

    if otros:
        ctx += f"\n--- OTROS CIERRES DEL MISMO DÍA ({len(otros)}) ---\n"
        for otro in otros:
            ctx += (
                f">> {otro.responsable} (ID {otro.id_cierre}): {otro.sobrante_faltante_tipo} "
                f"${fmt(abs(otro.sobrante_faltante_monto or 0))}\n"
            )
            ctx += f"   Hora: {otro.hora_inicio or '?'} - {otro.hora_fin or '?'}\n"

    ctx += "\n--- EVIDENCIA ---\n"
    if not evidencia:
        ctx += "Sin carpeta de soportes para este punto/fecha\n"
    for folder, info in evidencia.items():
        if info["cantidad"] > 0:
            ctx += f"{folder}: {info['cantidad']} archivo(s) - {', '.join(info['archivos'])}\n"
        else:
            ctx += f"{folder}: SIN EVIDENCIA\n"

    return ctx


def analyze_cierre(cierre: Cierre, clients) -> AnalysisOutcome:
    """
    Soportes -> extracción por lotes (reanudable) -> síntesis -> reporte.
    No persiste nada del cierre; eso lo hace ia_queue.
    """
    fecha = cierre.fecha.isoformat()

    archivos = clients.storage.list_files(cierre.punto, fecha)
    evidencia = evidencia_resumen(archivos)
    otros = otros_cierres_del_dia(cierre)

    media = collect_media_files(archivos)
    datos: List[str] = []
    lotes = 0
    if media:
        orchestrator = EvidenceBatchOrchestrator(
            source=clients.storage,
            extractor=clients.llm,
            store=clients.cache_store,
            max_bytes=clients.batch_max_bytes,
        )
        progress = orchestrator.run(cierre.id, media)
        datos = progress.datos_extraidos
        lotes = progress.batches_completed

    contexto = build_contexto_cierre(cierre, evidencia, otros)
    text = clients.llm.synthesize(contexto, datos, len(media))

    parsed = parse_ia_response(text)
    mensaje = build_mensaje_ia(cierre, parsed, otros)

    logger.info(
        f"Analysis done cierre={cierre.id} archivos={len(media)} lotes={lotes} "
        f"estructurada={parsed.estructurada}"
    )

    return AnalysisOutcome(
        resultado=parsed.resumen,
        explicacion=parsed.completo,
        accion=parsed.accion,
        mensaje=mensaje,
        parsed=parsed,
        evidencia=evidencia,
        total_archivos=len(media),
        lotes=lotes,
    )
