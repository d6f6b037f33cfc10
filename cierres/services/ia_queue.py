# cierres/services/ia_queue.py

from __future__ import annotations

from typing import Dict, Optional

from cierres.extensions import db
from cierres.models import Alerta, Cierre
from cierres.services.analyzer import analyze_cierre
from cierres.services.notifications import render_alert_email
from cierres.utils.logging import get_logger

logger = get_logger("ia_queue")

# estados desde los que se puede pedir (re)análisis manual
ESTADOS_TRIGGER = ("IA_PENDIENTE", "ESPERANDO_SOBRE", "IA_ERROR", "IA_COMPLETADO")


def next_pending() -> Optional[Cierre]:
    """
    Siguiente cierre IA_PENDIENTE. Orden: más viejo primero.
    """
    return (
        Cierre.query
        .filter(Cierre.estado_auditoria_ia == "IA_PENDIENTE")
        .order_by(Cierre.created_at.asc(), Cierre.id.asc())
        .first()
    )


def run_ia_analysis(cierre_id: int, clients) -> Dict:
    cierre = db.session.get(Cierre, cierre_id)
    if not cierre:
        raise LookupError(f"Cierre no existe: {cierre_id}")

    # el estado no cambia hasta tener veredicto o error: una corrida cortada
    # sigue en IA_PENDIENTE y la próxima retoma desde el cache de lotes
    try:
        outcome = analyze_cierre(cierre, clients)

        cierre.mark_ia_done(
            resultado=outcome.resultado,
            explicacion=outcome.explicacion,
            accion=outcome.accion,
            mensaje=outcome.mensaje,
        )
        for alerta in Alerta.query.filter_by(cierre_id=cierre.id).all():
            alerta.explicacion_ia = outcome.explicacion
            alerta.mensaje_listo = outcome.mensaje
        db.session.commit()

        # la extracción ya quedó reflejada en el veredicto
        clients.cache_store.delete(cierre.id)

    except Exception as e:
        db.session.rollback()
        cierre = db.session.get(Cierre, cierre_id)
        cierre.mark_ia_failed(e)
        db.session.commit()
        logger.exception(f"IA analysis failed cierre={cierre_id}: {e}")
        return {"cierre_id": cierre_id, "status": "FAILED", "error": str(e)}

    if cierre.nivel_riesgo in ("MEDIO", "ALTO"):
        subject, text, html = render_alert_email(cierre, outcome.mensaje, outcome.parsed, outcome.evidencia)
        clients.notifier.send(subject, text, html)

    logger.info(f"IA analysis done cierre={cierre_id} veredicto={outcome.resultado!r}")
    return {
        "cierre_id": cierre_id,
        "status": "DONE",
        "cierre": f"{cierre.punto} {cierre.fecha.isoformat()}",
        "veredicto": outcome.resultado,
        "estado": cierre.estado_auditoria_ia,
        "archivos": outcome.total_archivos,
        "lotes": outcome.lotes,
    }


def trigger_ia_analysis(cierre_id: int, clients) -> Dict:
    """
    Análisis manual. Raises LookupError si no existe, ValueError si el
    estado no lo permite.
    """
    cierre = db.session.get(Cierre, cierre_id)
    if not cierre:
        raise LookupError(f"Cierre no existe: {cierre_id}")
    if cierre.estado_auditoria_ia not in ESTADOS_TRIGGER:
        raise ValueError(f"Estado {cierre.estado_auditoria_ia} no permite análisis IA")

    # vuelve a la cola: si la corrida se corta, el cron la retoma
    cierre.mark_ia_pending()
    db.session.commit()
    return run_ia_analysis(cierre_id, clients)


def process_next(clients) -> Optional[Dict]:
    """
    Procesa UN cierre pendiente. None si la cola está vacía.
    """
    cierre = next_pending()
    if not cierre:
        return None
    logger.info(f"IA queue: cierre={cierre.id} punto={cierre.punto} fecha={cierre.fecha}")
    return run_ia_analysis(cierre.id, clients)
