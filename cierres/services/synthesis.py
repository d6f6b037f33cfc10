# cierres/services/synthesis.py

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cierres.utils.dates import display_from_iso
from cierres.utils.json_fields import as_dict, as_list, as_text, truthy
from cierres.utils.money import format_money, parse_money

RESUMEN_FALLBACK_CHARS = 200

VERIFICACION_LABELS = {
    "formula_efectivo": "Efectivo",
    "formula_declarado": "Declarado",
    "formula_sobre": "Sobre",
    "formula_formas_pago": "Formas de pago",
    "cadena_turnos": "Cadena de turnos",
}


@dataclass(frozen=True)
class ParsedIAResponse:
    """
    Respuesta de síntesis en dos variantes:
      - estructurada: json != None
      - texto libre: json is None, resumen = primeros 200 caracteres
    completo siempre guarda el texto original.
    """
    resumen: str
    accion: str
    completo: str
    json: Optional[Dict[str, Any]] = None

    @property
    def estructurada(self) -> bool:
        return self.json is not None


def parse_ia_response(text: Optional[str]) -> ParsedIAResponse:
    text = text or ""

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            veredicto = as_text(parsed.get("veredicto")) or "SIN VEREDICTO"
            return ParsedIAResponse(
                resumen=f"{veredicto} — {as_text(parsed.get('resumen'))}",
                accion=as_text(parsed.get("accion")),
                completo=text,
                json=parsed,
            )

    resumen = text[:RESUMEN_FALLBACK_CHARS] + ("..." if len(text) > RESUMEN_FALLBACK_CHARS else "")
    return ParsedIAResponse(resumen=resumen, accion="", completo=text, json=None)


def _money(v) -> str:
    return format_money(parse_money(v))


def _render_efectivo(j: Dict[str, Any]) -> str:
    ef = as_dict(j.get("efectivo"))
    if not ef:
        return ""
    out = "EFECTIVO:\n"
    out += f"  Sistema: ${_money(ef.get('sistema'))} | Declarado: ${_money(ef.get('declarado'))}"
    if ef.get("sobre") is not None:
        out += f" | Sobre: ${_money(ef.get('sobre'))}"
    out += f"\n  Diferencia: ${_money(ef.get('diferencia'))}"
    if as_text(ef.get("explicacion")):
        out += f" ({as_text(ef.get('explicacion'))})"
    return out + "\n\n"


def _render_gastos(j: Dict[str, Any]) -> str:
    gastos = [g for g in as_list(j.get("gastos")) if isinstance(g, dict)]
    if not gastos:
        return ""
    verificados = sum(1 for g in gastos if truthy(g.get("verificado")))
    out = f"GASTOS VERIFICADOS ({verificados}/{len(gastos)}):\n"
    for g in gastos:
        ok = truthy(g.get("verificado"))
        out += f"  {'OK' if ok else 'XX'} {as_text(g.get('concepto')) or '?'} — ${_money(g.get('monto'))}"
        soporte = as_text(g.get("soporte"))
        if soporte and soporte != "SIN SOPORTE":
            out += f" ({soporte})"
        elif not ok:
            out += " — SIN SOPORTE"
        out += "\n"
    return out + "\n"


def _render_transferencias(j: Dict[str, Any]) -> str:
    transferencias = [t for t in as_list(j.get("transferencias")) if isinstance(t, dict)]
    if not transferencias:
        return ""
    out = "TRANSFERENCIAS:\n"
    for t in transferencias:
        out += f"  {'OK' if truthy(t.get('verificado')) else 'XX'} {as_text(t.get('tipo')) or '?'} ${_money(t.get('monto'))}"
        if as_text(t.get("screenshot")):
            out += f" ({as_text(t.get('screenshot'))})"
        out += "\n"
    return out + "\n"


def _render_verificacion(j: Dict[str, Any]) -> str:
    ver = as_dict(j.get("verificacion_matematica"))
    lines = []
    for key, value in ver.items():
        v = as_text(value)
        if not v:
            continue
        label = VERIFICACION_LABELS.get(key, key)
        lines.append(f"  {label}: {v}")
    if not lines:
        return ""
    return "VERIFICACION MATEMATICA:\n" + "\n".join(lines) + "\n\n"


def build_mensaje_ia(cierre, parsed: ParsedIAResponse, otros_cierres=None) -> str:
    """
    Reporte para el admin. Cada sección es opcional: una respuesta parcial
    o mal formada igual produce un reporte útil.
    """
    otros_cierres = otros_cierres or []
    fecha = cierre.fecha.isoformat() if hasattr(cierre.fecha, "isoformat") else str(cierre.fecha or "")

    msg = f"CIERRE: {cierre.punto} | {display_from_iso(fecha)}"
    if cierre.hora_inicio or cierre.hora_fin:
        msg += f" | {cierre.hora_inicio or '?'}-{cierre.hora_fin or '?'}"
    msg += f"\nCajero: {cierre.responsable or 'N/A'} | Nivel: {cierre.nivel_riesgo or 'N/A'}\n"

    if parsed.json is not None:
        j = parsed.json
        msg += f"VEREDICTO: {as_text(j.get('veredicto')) or 'N/A'} — {as_text(j.get('resumen'))}\n\n"
        msg += _render_efectivo(j)
        msg += _render_gastos(j)
        msg += _render_transferencias(j)
        msg += _render_verificacion(j)

        no_legibles = [as_text(x) for x in as_list(j.get("documentos_no_legibles")) if as_text(x)]
        if no_legibles:
            msg += f"NO LEGIBLES: {', '.join(no_legibles)}\n\n"

        anomalias = [as_text(a) for a in as_list(j.get("anomalias")) if as_text(a)]
        if anomalias:
            msg += "ANOMALIAS:\n"
            for a in anomalias:
                msg += f"  ! {a}\n"
            msg += "\n"

        if as_text(j.get("accion")):
            msg += f"ACCION: {as_text(j.get('accion'))}\n"
    else:
        msg += f"VEREDICTO: {parsed.resumen}\n\nACCION: {parsed.accion or 'Revisar manualmente'}\n"

    if otros_cierres:
        msg += "\nOTROS TURNOS:\n"
        for otro in otros_cierres:
            msg += (
                f"  {otro.responsable or '?'}: {otro.sobrante_faltante_tipo} "
                f"${format_money(abs(otro.sobrante_faltante_monto or 0))}\n"
            )

    return msg
