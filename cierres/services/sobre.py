# cierres/services/sobre.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cierres.extensions import db
from cierres.models import Cierre
from cierres.services.classification import AuditThresholds, classify_cierre
from cierres.services.messages import SobreResumen
from cierres.utils.logging import get_logger
from cierres.utils.money import parse_money

logger = get_logger("sobre")


@dataclass
class SobreCalc:
    esperado: int
    diferencia: int
    estado: str  # CONFIRMADO / DISCREPANCIA


def calcular_sobre(declarado: int, apertura: int, contado: int, tolerancia: int = 500) -> SobreCalc:
    """
    Sobre esperado = declarado - base dejada al siguiente turno (apertura).
    diferencia = contado - esperado; dentro de tolerancia -> CONFIRMADO.
    Ej: declaró 388,000, dejó base 300,000 -> el sobre debe tener 88,000.
    """
    esperado = declarado - apertura
    diferencia = contado - esperado
    estado = "CONFIRMADO" if abs(diferencia) <= tolerancia else "DISCREPANCIA"
    return SobreCalc(esperado=esperado, diferencia=diferencia, estado=estado)


def sobre_resumen(cierre: Cierre) -> Optional[SobreResumen]:
    if cierre.efectivo_contado_sobre is None:
        return None
    return SobreResumen(
        contado=cierre.efectivo_contado_sobre,
        diferencia=cierre.sobre_diferencia or 0,
        estado=cierre.sobre_estado or "",
        notas=cierre.sobre_notas or "",
    )


def registrar_sobre(cierre_id: int, efectivo_contado, notas: Optional[str], thresholds: AuditThresholds) -> dict:
    """
    Guarda el conteo del sobre y deja el cierre en cola IA (IA_PENDIENTE).
    """
    cierre = db.session.get(Cierre, cierre_id)
    if not cierre:
        raise LookupError(f"Cierre no existe: {cierre_id}")

    if efectivo_contado is None or str(efectivo_contado).strip() == "":
        raise ValueError("efectivo_contado requerido")

    contado = parse_money(efectivo_contado)
    calc = calcular_sobre(
        declarado=cierre.efectivo_declarado or 0,
        apertura=cierre.apertura_valor or 0,
        contado=contado,
        tolerancia=thresholds.tolerancia,
    )

    cierre.efectivo_contado_sobre = contado
    cierre.sobre_diferencia = calc.diferencia
    cierre.sobre_estado = calc.estado
    cierre.sobre_fecha_conteo = datetime.utcnow()
    cierre.sobre_notas = (notas or "").strip() or None

    # el mensaje se regenera con la sección del sobre
    result = classify_cierre(cierre, thresholds, sobre=sobre_resumen(cierre))
    cierre.mensaje_listo = result.mensaje_listo
    cierre.mark_ia_pending()
    db.session.commit()

    logger.info(
        f"Sobre registrado cierre={cierre_id} contado={contado} "
        f"esperado={calc.esperado} diferencia={calc.diferencia} estado={calc.estado}"
    )

    return {
        "success": True,
        "sobre_esperado": calc.esperado,
        "sobre_estado": calc.estado,
        "diferencia": calc.diferencia,
        "nuevo_estado": cierre.estado_auditoria_ia,
    }


def cierres_pendientes_sobre():
    return (
        Cierre.query
        .filter(Cierre.estado_auditoria_ia == "ESPERANDO_SOBRE")
        .order_by(Cierre.fecha.desc())
        .all()
    )
