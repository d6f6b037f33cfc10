# cierres/services/notifications.py

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from html import escape
from typing import Dict, List, Optional, Tuple

from cierres.models import Alerta, Cierre
from cierres.services.synthesis import ParsedIAResponse
from cierres.utils.dates import parse_date
from cierres.utils.json_fields import as_list, as_text, truthy
from cierres.utils.logging import get_logger
from cierres.utils.money import format_money, parse_money

logger = get_logger("notifications")

# descuadres que entran al resumen diario
UMBRAL_DESCUADRE_RESUMEN = 5000


class SMTPNotifier:
    """
    Envía correos al admin. Sin ADMIN_EMAIL o SMTP_HOST no envía (warning).
    Un fallo de envío se registra y no interrumpe el flujo que lo llamó.
    """

    def __init__(self, host: str, port: int, user: str, password: str, sender: str, admin_email: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.admin_email = admin_email

    @classmethod
    def from_config(cls, config) -> "SMTPNotifier":
        return cls(
            host=config.get("SMTP_HOST", ""),
            port=int(config.get("SMTP_PORT", 587)),
            user=config.get("SMTP_USER", ""),
            password=config.get("SMTP_PASSWORD", ""),
            sender=config.get("MAIL_FROM", ""),
            admin_email=config.get("ADMIN_EMAIL", ""),
        )

    def send(self, subject: str, text: str, html: str) -> bool:
        if not self.admin_email:
            logger.warning("ADMIN_EMAIL no configurado, no se envía email")
            return False
        if not self.host:
            logger.warning("SMTP_HOST no configurado, no se envía email")
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = self.admin_email
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
                smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.exception(f"Error enviando email subject={subject!r}: {e}")
            return False

        logger.info(f"Email enviado to={self.admin_email} subject={subject!r}")
        return True


def render_alert_email(
    cierre: Cierre,
    mensaje_ia: str,
    parsed: ParsedIAResponse,
    evidencia: Dict[str, dict],
) -> Tuple[str, str, str]:
    """
    (asunto, texto, html) de la alerta de un cierre analizado por IA.
    """
    nivel = cierre.nivel_riesgo or "N/A"
    emoji = "🔴" if nivel == "ALTO" else "🟡"
    color = "#FF4444" if nivel == "ALTO" else "#FFB300"
    fecha = cierre.fecha.isoformat() if hasattr(cierre.fecha, "isoformat") else str(cierre.fecha)
    subject = f"{emoji} ALERTA {nivel} - {cierre.punto} - {fecha}"

    accion = parsed.accion or cierre.accion_recomendada or "Revisar soportes."
    total_archivos = sum(info.get("cantidad", 0) for info in evidencia.values())

    html = '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
    html += (
        f'<div style="background: {color}; color: white; padding: 12px 16px; '
        f'border-radius: 8px 8px 0 0; font-size: 18px; font-weight: bold;">'
        f"{emoji} {escape(nivel)} — {escape(cierre.punto)} | {fecha}</div>"
    )

    html += '<div style="background: #FFF3CD; padding: 12px 16px; border: 1px solid #FFE69C;">'
    html += f"<strong>QUÉ HACER:</strong><br>{escape(accion)}</div>"

    if parsed.resumen:
        html += '<div style="background: #E3F2FD; padding: 12px 16px; border: 1px solid #90CAF9;">'
        html += f"<strong>VEREDICTO:</strong> {escape(parsed.resumen)}</div>"

    html += '<div style="background: #F8F9FA; padding: 12px 16px; border: 1px solid #DEE2E6;">'
    html += "<strong>Números:</strong><br>"
    html += (
        f"• <strong>Diferencia: {escape(cierre.sobrante_faltante_tipo or '')} "
        f"${format_money(abs(cierre.sobrante_faltante_monto or 0))}</strong><br>"
    )
    html += (
        f"• Efectivo: ${format_money(cierre.efectivo_sistema)} (sistema) vs "
        f"${format_money(cierre.efectivo_declarado)} (declarado)<br>"
    )
    html += f"• Responsable: {escape(cierre.responsable or 'N/A')}</div>"

    gastos = [g for g in as_list((parsed.json or {}).get("gastos")) if isinstance(g, dict)]
    if gastos:
        verificados = sum(1 for g in gastos if truthy(g.get("verificado")))
        html += '<div style="padding: 12px 16px; border: 1px solid #DEE2E6; background: #F1F8E9;">'
        html += f"<strong>Gastos ({verificados}/{len(gastos)} verificados):</strong><br>"
        for g in gastos:
            ok = truthy(g.get("verificado"))
            html += f"{'✅' if ok else '❌'} {escape(as_text(g.get('concepto')))} — ${format_money(parse_money(g.get('monto')))}"
            if not ok:
                html += ' <span style="color:#D32F2F;">(SIN SOPORTE)</span>'
            html += "<br>"
        html += "</div>"

    anomalias = [as_text(a) for a in as_list((parsed.json or {}).get("anomalias")) if as_text(a)]
    if anomalias:
        html += '<div style="padding: 12px 16px; border: 1px solid #FFB74D; background: #FFF3E0;">'
        html += "<strong>Anomalías:</strong><br>"
        for a in anomalias:
            html += f"• {escape(a)}<br>"
        html += "</div>"

    if total_archivos == 0:
        html += '<div style="background: #FFF3E0; padding: 10px 16px; border: 1px solid #FFB74D;">'
        html += "Sin evidencia cargada. Sube fotos para análisis.</div>"

    html += "</div>"
    return subject, mensaje_ia, html


@dataclass
class DailySummary:
    fecha: str
    total_cierres: int = 0
    faltante_total: int = 0
    descuadres: List[dict] = field(default_factory=list)
    alertas_pendientes: int = 0
    sobres_pendientes: int = 0


def build_daily_summary(fecha_iso: str) -> Optional[DailySummary]:
    """
    Resumen del día. Sin cierres ese día -> None.
    """
    fecha = parse_date(fecha_iso)
    if fecha is None:
        raise ValueError(f"Fecha inválida: {fecha_iso}")

    cierres = Cierre.query.filter(Cierre.fecha == fecha.date()).all()
    if not cierres:
        return None

    resumen = DailySummary(fecha=fecha_iso, total_cierres=len(cierres))
    for c in cierres:
        monto = c.sobrante_faltante_monto or 0
        if c.sobrante_faltante_tipo == "FALTANTE":
            resumen.faltante_total += abs(monto)
        if abs(monto) > UMBRAL_DESCUADRE_RESUMEN and c.sobrante_faltante_tipo != "OK":
            resumen.descuadres.append({
                "punto": c.punto,
                "responsable": c.responsable or "N/A",
                "monto": monto,
                "tipo": c.sobrante_faltante_tipo,
            })

    resumen.alertas_pendientes = Alerta.query.filter(Alerta.estado == "PENDIENTE").count()
    resumen.sobres_pendientes = Cierre.query.filter(Cierre.estado_auditoria_ia == "ESPERANDO_SOBRE").count()
    return resumen


def render_daily_summary(resumen: DailySummary) -> Tuple[str, str, str]:
    subject = f"📊 Resumen cierres {resumen.fecha} - {len(resumen.descuadres)} descuadre(s)"

    lines = [
        f"RESUMEN DE CIERRES {resumen.fecha}",
        f"Cierres del día: {resumen.total_cierres}",
        f"Faltante total: ${format_money(resumen.faltante_total)}",
        f"Alertas pendientes: {resumen.alertas_pendientes}",
        f"Sobres pendientes de conteo: {resumen.sobres_pendientes}",
    ]
    if resumen.descuadres:
        lines.append("")
        lines.append(f"DESCUADRES (> ${format_money(UMBRAL_DESCUADRE_RESUMEN)}):")
        for d in resumen.descuadres:
            lines.append(f"  {d['punto']} | {d['responsable']} | {d['tipo']} ${format_money(abs(d['monto']))}")
    text = "\n".join(lines) + "\n"

    html = '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
    html += f"<h3>Resumen de cierres {escape(resumen.fecha)}</h3><ul>"
    for line in lines[1:5]:
        html += f"<li>{escape(line)}</li>"
    html += "</ul>"
    if resumen.descuadres:
        html += "<table border='1' cellpadding='4' style='border-collapse: collapse;'>"
        html += "<tr><th>Punto</th><th>Responsable</th><th>Tipo</th><th>Monto</th></tr>"
        for d in resumen.descuadres:
            html += (
                f"<tr><td>{escape(d['punto'])}</td><td>{escape(d['responsable'])}</td>"
                f"<td>{escape(d['tipo'] or '')}</td><td>${format_money(abs(d['monto']))}</td></tr>"
            )
        html += "</table>"
    html += "</div>"

    return subject, text, html
