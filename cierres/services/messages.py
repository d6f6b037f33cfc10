# cierres/services/messages.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cierres.utils.money import format_money

NIVEL_EMOJI = {
    "ALTO": "🔴",
    "MEDIO": "🟡",
    "BAJO": "🟠",
}


@dataclass
class SobreResumen:
    contado: Optional[int]
    diferencia: int
    estado: str  # CONFIRMADO / DISCREPANCIA
    notas: str = ""


def build_mensaje_listo(
    punto: str,
    responsable: str,
    fecha: str,
    efectivo_sistema: int,
    efectivo_declarado: int,
    efectivo_diferencia: int,
    tarjetas_otros_diferencia: int,
    sobrante_faltante_monto: int,
    sobrante_faltante_tipo: str,
    nivel: str,
    accion: str,
    sobre: Optional[SobreResumen] = None,
) -> str:
    """
    Mensaje listo para copiar a WhatsApp/correo.
    """
    emoji = NIVEL_EMOJI.get(nivel, "🟢")

    msg = f"{emoji} ALERTA CIERRE\n"
    msg += f"📅 Fecha: {fecha}\n"
    msg += f"📍 Punto: {punto}\n"
    msg += f"👤 Responsable: {responsable}\n\n"
    msg += "📊 RESUMEN:\n"
    msg += f"• Efectivo Sistema: ${format_money(efectivo_sistema)}\n"
    msg += f"• Efectivo Declarado: ${format_money(efectivo_declarado)}\n"
    msg += f"• Diferencia Efectivo: ${format_money(efectivo_diferencia)}\n"

    if tarjetas_otros_diferencia:
        msg += f"• Diferencia Tarjetas: ${format_money(tarjetas_otros_diferencia)}\n"

    msg += f"• Resultado: {sobrante_faltante_tipo} ${format_money(abs(sobrante_faltante_monto))}\n\n"

    if sobre is not None and sobre.contado is not None:
        sobre_emoji = "✅" if sobre.estado == "CONFIRMADO" else "⚠️"
        msg += "💼 CONFIRMACIÓN DE SOBRE:\n"
        msg += f"• Efectivo Contado: ${format_money(sobre.contado)}\n"
        msg += f"• Diferencia vs Esperado: ${format_money(sobre.diferencia)}\n"
        msg += f"• Estado: {sobre_emoji} {sobre.estado}\n"
        if sobre.notas:
            msg += f"• Notas: {sobre.notas}\n"
        msg += "\n"
    else:
        msg += "💼 Sobre: PENDIENTE_CONTEO\n\n"

    msg += f"🚦 Nivel: {nivel}\n"
    msg += f"⚡ Acción: {accion}\n"
    msg += "📌 Estado: PENDIENTE\n"

    return msg
