# cierres/services/classification.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from cierres.services.messages import SobreResumen, build_mensaje_listo
from cierres.utils.money import format_money, parse_money


@dataclass(frozen=True)
class AuditThresholds:
    tolerancia: int = 500
    umbral_bajo: int = 5000
    umbral_medio: int = 20000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuditThresholds":
        return cls(
            tolerancia=int(config.get("TOLERANCIA_COP", 500)),
            umbral_bajo=int(config.get("UMBRAL_BAJO", 5000)),
            umbral_medio=int(config.get("UMBRAL_MEDIO", 20000)),
        )


@dataclass(frozen=True)
class AlertaData:
    punto: str
    responsable: Optional[str]
    diferencia_total: int
    tipo_alerta: str        # SOBRANTE / FALTANTE / SIN_DECLARADO
    nivel_riesgo: str       # BAJO / MEDIO / ALTO
    accion_recomendada: str
    mensaje_listo: str


@dataclass(frozen=True)
class ClassifyResult:
    nivel_riesgo: str           # OK / BAJO / MEDIO / ALTO / NO_AUDITABLE
    estado_auditoria_ia: str    # PENDIENTE / ESPERANDO_SOBRE / IA_COMPLETADO
    resultado: str
    accion_recomendada: str
    mensaje_listo: str
    necesita_ia: bool
    alerta: Optional[AlertaData] = None


def _get(cierre, name: str, default=None):
    if isinstance(cierre, Mapping):
        return cierre.get(name, default)
    return getattr(cierre, name, default)


def nivel_y_accion(
    tipo: Optional[str],
    monto: int,
    punto: str,
    fecha: str,
    responsable: str,
    thresholds: AuditThresholds,
):
    """
    Escalera de riesgo por |sobrante/faltante|. Retorna (nivel, estado, accion).
    """
    d = abs(monto)

    if not tipo or tipo == "SIN_DECLARADO":
        return (
            "NO_AUDITABLE",
            "PENDIENTE",
            "Falta el mensaje de DINERO DECLARADO. Pedir al cajero y pegarlo.",
        )
    if d <= thresholds.tolerancia:
        return (
            "OK",
            "IA_COMPLETADO",
            f"Sin acción requerida. Cierre dentro de tolerancia (${format_money(thresholds.tolerancia)}).",
        )
    if d <= thresholds.umbral_bajo:
        return "BAJO", "IA_COMPLETADO", "Contar el sobre físico y registrar el conteo."
    if d <= thresholds.umbral_medio:
        return (
            "MEDIO",
            "ESPERANDO_SOBRE",
            f"Contar sobre físico. Subir fotos de soportes a la carpeta {punto}/{fecha}. Esperar análisis IA.",
        )
    return (
        "ALTO",
        "ESPERANDO_SOBRE",
        f"URGENTE: Contar sobre AHORA. Subir TODOS los soportes. Llamar al cajero {responsable} para explicación.",
    )


def classify_cierre(
    cierre,
    thresholds: Optional[AuditThresholds] = None,
    sobre: Optional[SobreResumen] = None,
) -> ClassifyResult:
    """
    Clasifica un cierre (ParsedCierre, modelo o dict) por su sobrante/faltante.
    Función pura: no toca BD ni envía nada.
    """
    thresholds = thresholds or AuditThresholds()

    monto = parse_money(_get(cierre, "sobrante_faltante_monto", 0))
    tipo = _get(cierre, "sobrante_faltante_tipo") or "SIN_DECLARADO"
    punto = _get(cierre, "punto") or ""
    fecha = str(_get(cierre, "fecha") or "")
    responsable = _get(cierre, "responsable") or ""

    nivel, estado, accion = nivel_y_accion(tipo, monto, punto, fecha, responsable, thresholds)

    mensaje = build_mensaje_listo(
        punto=punto,
        responsable=responsable,
        fecha=fecha,
        efectivo_sistema=parse_money(_get(cierre, "efectivo_sistema", 0)),
        efectivo_declarado=parse_money(_get(cierre, "efectivo_declarado", 0)),
        efectivo_diferencia=parse_money(_get(cierre, "efectivo_diferencia", 0)),
        tarjetas_otros_diferencia=parse_money(_get(cierre, "tarjetas_otros_diferencia", 0)),
        sobrante_faltante_monto=monto,
        sobrante_faltante_tipo=tipo,
        nivel=nivel,
        accion=accion,
        sobre=sobre,
    )

    alerta = None
    if nivel != "OK":
        alerta = AlertaData(
            punto=punto,
            responsable=_get(cierre, "responsable"),
            diferencia_total=monto,
            tipo_alerta="SIN_DECLARADO" if nivel == "NO_AUDITABLE" else tipo,
            nivel_riesgo="BAJO" if nivel == "NO_AUDITABLE" else nivel,
            accion_recomendada=accion,
            mensaje_listo=mensaje,
        )

    return ClassifyResult(
        nivel_riesgo=nivel,
        estado_auditoria_ia=estado,
        resultado=f"{tipo} ${format_money(abs(monto))}",
        accion_recomendada=accion,
        mensaje_listo=mensaje,
        necesita_ia=nivel in ("MEDIO", "ALTO"),
        alerta=alerta,
    )
