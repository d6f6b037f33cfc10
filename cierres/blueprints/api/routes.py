# cierres/blueprints/api/routes.py

import hmac
import os
from datetime import timedelta
from functools import wraps

from flask import Blueprint, current_app, jsonify, request, send_file

from cierres.extensions import db
from cierres.exporters.excel_export import export_periodo_to_excel
from cierres.models import Alerta, Cierre
from cierres.parsers.whatsapp import parse_whatsapp_text
from cierres.services.ia_queue import process_next, trigger_ia_analysis
from cierres.services.ingest import ingest_text
from cierres.services.metrics import estado_sistema, metricas_periodo
from cierres.services.notifications import build_daily_summary, render_daily_summary
from cierres.services.sobre import cierres_pendientes_sobre, registrar_sobre
from cierres.services.storage import evidencia_resumen
from cierres.utils.dates import format_date_iso, now_local, parse_date, today_iso
from cierres.utils.logging import get_logger

logger = get_logger("api")

api_bp = Blueprint("api", __name__)

ESTADOS_ALERTA = ("PENDIENTE", "REVISADA", "RESUELTA")


def _clients():
    return current_app.extensions["cierres"]


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        raise ValueError(f"{name} debe ser entero")


def cron_required(fn):
    """Authorization: Bearer <CRON_SECRET>. Sin secreto configurado, no pasa nadie."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        secret = current_app.config.get("CRON_SECRET") or ""
        header = request.headers.get("Authorization", "")
        if not secret or not hmac.compare_digest(header.encode(), f"Bearer {secret}".encode()):
            return jsonify({"error": "No autorizado"}), 401
        return fn(*args, **kwargs)
    return wrapper


@api_bp.errorhandler(ValueError)
def _bad_request(e):
    return jsonify({"error": str(e)}), 400


@api_bp.errorhandler(LookupError)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@api_bp.route("/ping")
def ping():
    return jsonify({"status": "ok"})


# ----------------------------
# Ingesta
# ----------------------------
@api_bp.route("/parse", methods=["POST"])
def parse_preview():
    body = _json_body()
    result = parse_whatsapp_text(body.get("texto") or body.get("text") or "", _clients().tables)
    return jsonify(result.to_dict()), (200 if result.success else 400)


@api_bp.route("/ingest", methods=["POST"])
def ingest():
    body = _json_body()
    result = ingest_text(body.get("texto") or body.get("text") or "", _clients())
    if not result.success:
        return jsonify({
            "success": False,
            "error": "; ".join(result.errors),
            "warnings": result.warnings,
        }), 400
    return jsonify(result.to_dict())


@api_bp.route("/webhook", methods=["POST"])
def webhook():
    """
    Ingesta externa: {"texto"|"text", "token"}. El token se compara con
    API_TOKEN; sin token configurado se rechaza todo.
    """
    body = _json_body()
    expected = current_app.config.get("API_TOKEN") or ""
    token = str(body.get("token") or "")
    if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
        return jsonify({"error": "Token inválido"}), 401

    texto = body.get("texto") or body.get("text") or ""
    if not str(texto).strip():
        return jsonify({"error": "Texto vacío"}), 400

    result = ingest_text(texto, _clients())
    if not result.success:
        return jsonify({"success": False, "error": "; ".join(result.errors)}), 400
    logger.info(f"Webhook ingest inbox={result.inbox_id} cierres={result.cierres_procesados}")
    return jsonify({"success": True, "cierres_procesados": result.cierres_procesados})


# ----------------------------
# Cierres
# ----------------------------
@api_bp.route("/cierres")
def list_cierres():
    limit = _int_arg("limit", 20)
    offset = _int_arg("offset", 0)

    q = Cierre.query
    punto = request.args.get("punto")
    if punto:
        q = q.filter(Cierre.punto == punto)
    fecha = request.args.get("fecha")
    if fecha:
        d = parse_date(fecha)
        if d is None:
            raise ValueError(f"Fecha inválida: {fecha}")
        q = q.filter(Cierre.fecha == d.date())

    count = q.count()
    rows = (
        q.order_by(Cierre.fecha.desc(), Cierre.created_at.desc())
        .offset(offset).limit(limit).all()
    )
    return jsonify({"data": [c.to_dict() for c in rows], "count": count})


def _get_cierre(cierre_id: int) -> Cierre:
    cierre = db.session.get(Cierre, cierre_id)
    if not cierre:
        raise LookupError("Cierre no encontrado")
    return cierre


@api_bp.route("/cierres/<int:cierre_id>")
def get_cierre(cierre_id: int):
    cierre = _get_cierre(cierre_id)
    data = cierre.to_dict()
    data["alertas"] = [a.to_dict() for a in cierre.alertas]
    data["evidencia"] = evidencia_resumen(_clients().storage.list_files(cierre.punto, cierre.fecha.isoformat()))
    return jsonify(data)


@api_bp.route("/cierres/<int:cierre_id>/observaciones", methods=["PATCH"])
def update_observaciones(cierre_id: int):
    observaciones = _json_body().get("observaciones")
    if not observaciones or not isinstance(observaciones, str):
        raise ValueError("observaciones requeridas")

    cierre = _get_cierre(cierre_id)
    cierre.observaciones_admin = observaciones.strip()
    db.session.commit()
    logger.info(f"Observaciones guardadas cierre={cierre_id}")
    return jsonify({"success": True})


# ----------------------------
# Sobres
# ----------------------------
@api_bp.route("/sobres")
def list_sobres():
    rows = cierres_pendientes_sobre()
    return jsonify({"data": [{
        "id": c.id,
        "fecha": c.fecha.isoformat(),
        "punto": c.punto,
        "responsable": c.responsable,
        "id_cierre": c.id_cierre,
        "efectivo_declarado": c.efectivo_declarado,
        "apertura_valor": c.apertura_valor,
        "sobrante_faltante_monto": c.sobrante_faltante_monto,
        "sobrante_faltante_tipo": c.sobrante_faltante_tipo,
        "nivel_riesgo": c.nivel_riesgo,
    } for c in rows]})


@api_bp.route("/sobres", methods=["POST"])
def post_sobre():
    body = _json_body()
    if not body.get("cierre_id"):
        raise ValueError("cierre_id requerido")
    out = registrar_sobre(
        cierre_id=int(body["cierre_id"]),
        efectivo_contado=body.get("efectivo_contado"),
        notas=body.get("notas"),
        thresholds=_clients().thresholds,
    )
    return jsonify(out)


# ----------------------------
# Evidencia
# ----------------------------
@api_bp.route("/cierres/<int:cierre_id>/evidencia", methods=["GET"])
def list_evidencia(cierre_id: int):
    cierre = _get_cierre(cierre_id)
    archivos = _clients().storage.list_files(cierre.punto, cierre.fecha.isoformat())
    return jsonify({"data": evidencia_resumen(archivos)})


@api_bp.route("/cierres/<int:cierre_id>/evidencia", methods=["POST"])
def upload_evidencia(cierre_id: int):
    cierre = _get_cierre(cierre_id)
    subfolder = request.form.get("carpeta") or "07_Otros"
    files = request.files.getlist("files")
    if not files:
        raise ValueError("No se recibieron archivos")

    storage = _clients().storage
    saved = [
        storage.save_evidence_file(f, cierre.punto, cierre.fecha.isoformat(), subfolder)
        for f in files
    ]
    return jsonify({"success": True, "archivos": [s["original_name"] for s in saved], "carpeta": subfolder})


# ----------------------------
# IA
# ----------------------------
@api_bp.route("/ia/trigger", methods=["POST"])
def ia_trigger():
    cierre_id = _json_body().get("cierre_id")
    if not cierre_id:
        raise ValueError("cierre_id requerido")
    out = trigger_ia_analysis(int(cierre_id), _clients())
    if out["status"] == "FAILED":
        return jsonify({"error": "Error en análisis IA", "details": out["error"]}), 500
    return jsonify({"success": True, "veredicto": out["veredicto"], "estado": out["estado"]})


# ----------------------------
# Cron
# ----------------------------
@api_bp.route("/cron/ia-queue")
@cron_required
def cron_ia_queue():
    out = process_next(_clients())
    if out is None:
        return jsonify({"message": "No hay cierres pendientes de IA"})
    if out["status"] == "FAILED":
        return jsonify({"error": "Error en análisis IA", "details": out["error"]}), 500
    return jsonify({"message": "Análisis IA completado", "cierre": out["cierre"], "veredicto": out["veredicto"]})


@api_bp.route("/cron/daily-summary")
@cron_required
def cron_daily_summary():
    clients = _clients()
    hoy = today_iso(clients.timezone)
    resumen = build_daily_summary(hoy)
    if resumen is None:
        return jsonify({"message": "Sin cierres hoy", "enviado": False})

    subject, text, html = render_daily_summary(resumen)
    enviado = clients.notifier.send(subject, text, html)
    return jsonify({
        "message": "Resumen enviado" if enviado else "Resumen no enviado",
        "enviado": enviado,
        "total_cierres": resumen.total_cierres,
        "descuadres": len(resumen.descuadres),
    })


@api_bp.route("/cron/evidence-folders")
@cron_required
def cron_evidence_folders():
    clients = _clients()
    manana = format_date_iso(now_local(clients.timezone) + timedelta(days=1))
    results = []
    for punto in clients.tables.puntos:
        try:
            clients.storage.ensure_date_folders(punto, manana)
            results.append(f"{punto}: OK")
        except OSError as e:
            logger.error(f"Error creando carpetas {punto}/{manana}: {e}")
            results.append(f"{punto}: Error - {e}")
    return jsonify({"message": "Carpetas de soportes creadas", "fecha": manana, "results": results})


# ----------------------------
# Alertas / dashboard
# ----------------------------
@api_bp.route("/alertas")
def list_alertas():
    estado = request.args.get("estado", "PENDIENTE")
    limit = _int_arg("limit", 50)
    q = Alerta.query.filter(Alerta.estado == estado)
    count = q.count()
    rows = q.order_by(Alerta.created_at.desc()).limit(limit).all()
    return jsonify({"data": [a.to_dict() for a in rows], "count": count})


@api_bp.route("/alertas", methods=["PATCH"])
def update_alerta():
    body = _json_body()
    alerta_id, estado = body.get("id"), body.get("estado")
    if not alerta_id or not estado:
        raise ValueError("id y estado requeridos")
    if estado not in ESTADOS_ALERTA:
        raise ValueError(f"Estado de alerta no válido: {estado}")

    alerta = db.session.get(Alerta, int(alerta_id))
    if not alerta:
        raise LookupError("Alerta no encontrada")
    alerta.estado = estado
    db.session.commit()
    return jsonify({"success": True})


@api_bp.route("/estado")
def estado():
    return jsonify(estado_sistema())


@api_bp.route("/metricas")
def metricas():
    return jsonify(metricas_periodo(_int_arg("dias", 7), _clients().timezone))


@api_bp.route("/export")
def export_excel():
    hasta = parse_date(request.args.get("hasta") or today_iso(_clients().timezone))
    if hasta is None:
        raise ValueError("hasta inválida")
    desde = parse_date(request.args.get("desde")) if request.args.get("desde") else hasta - timedelta(days=7)
    if desde is None:
        raise ValueError("desde inválida")

    path = os.path.abspath(export_periodo_to_excel(desde.date(), hasta.date(), current_app.config["OUTPUT_FOLDER"]))
    return send_file(path, as_attachment=True, download_name=os.path.basename(path))
