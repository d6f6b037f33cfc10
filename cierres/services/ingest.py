# cierres/services/ingest.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cierres.extensions import db
from cierres.models import Alerta, Cierre, InboxRaw
from cierres.models.cierre import PARSED_FIELDS
from cierres.parsers.normalization import coerce_formas_pago, coerce_gastos_detalle
from cierres.parsers.whatsapp import ParsedCierre, key_label, parse_whatsapp_text
from cierres.services.classification import ClassifyResult, classify_cierre
from cierres.utils.dates import parse_date
from cierres.utils.logging import get_logger

logger = get_logger("ingest")


@dataclass
class IngestResult:
    success: bool
    inbox_id: Optional[int] = None
    cierres_procesados: int = 0
    cierre_ids: List[int] = field(default_factory=list)
    resumen: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "inbox_id": self.inbox_id,
            "cierres_procesados": self.cierres_procesados,
            "cierre_ids": list(self.cierre_ids),
            "resumen": self.resumen,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def _find_existing(parsed: ParsedCierre, fecha) -> Optional[Cierre]:
    if parsed.hash_registro:
        row = Cierre.query.filter_by(hash_registro=parsed.hash_registro).first()
        if row:
            return row
    return Cierre.query.filter_by(fecha=fecha, punto=parsed.punto, id_cierre=parsed.id_cierre).first()


def upsert_cierre(parsed: ParsedCierre, audit: ClassifyResult) -> Cierre:
    """
    Inserta o actualiza el cierre (por hash o por fecha+punto+id).
    El conteo de sobre y las observaciones de un cierre existente se conservan.
    No hace commit.
    """
    fecha_dt = parse_date(parsed.fecha)
    if fecha_dt is None:
        raise ValueError(f"Fecha inválida: {parsed.fecha}")
    fecha = fecha_dt.date()

    cierre = _find_existing(parsed, fecha)
    if cierre is None:
        cierre = Cierre(fecha=fecha)
        db.session.add(cierre)
    else:
        cierre.fecha = fecha

    for name in PARSED_FIELDS:
        setattr(cierre, name, getattr(parsed, name))
    cierre.formas_pago = coerce_formas_pago(parsed.formas_pago)
    cierre.gastos_detalle = coerce_gastos_detalle(parsed.gastos_detalle)

    cierre.apply_classification(audit)
    cierre.fecha_revision = datetime.utcnow()
    db.session.flush()
    return cierre


def upsert_alerta(cierre: Cierre, audit: ClassifyResult) -> Optional[Alerta]:
    """
    Una alerta PENDIENTE por cierre: si ya existe se actualiza.
    """
    if audit.alerta is None:
        return None

    alerta = Alerta.query.filter_by(cierre_id=cierre.id, estado="PENDIENTE").first()
    if alerta is None:
        alerta = Alerta(cierre_id=cierre.id)
        db.session.add(alerta)

    a = audit.alerta
    alerta.punto = a.punto
    alerta.responsable = a.responsable
    alerta.diferencia_total = a.diferencia_total
    alerta.tipo_alerta = a.tipo_alerta
    alerta.nivel_riesgo = a.nivel_riesgo
    alerta.accion_recomendada = a.accion_recomendada
    alerta.mensaje_listo = a.mensaje_listo
    return alerta


def ingest_text(texto: Optional[str], clients) -> IngestResult:
    """
    Texto WhatsApp -> inbox_raw -> parser -> clasificación -> cierres/alertas.
    Cada cierre se guarda en su propia transacción; un error en uno no
    detiene los demás.
    """
    if not texto or not texto.strip():
        raise ValueError("Texto vacío")

    inbox = InboxRaw(texto_whatsapp=texto, procesado=False)
    db.session.add(inbox)
    db.session.commit()

    parsed = parse_whatsapp_text(texto, clients.tables)
    result = IngestResult(success=parsed.success, inbox_id=inbox.id, warnings=list(parsed.warnings))

    if not parsed.success:
        result.errors = list(parsed.errors)
        inbox.mark_processed(resumen=None, error="; ".join(parsed.errors))
        db.session.commit()
        logger.warning(f"Ingest inbox={inbox.id} sin cierres: {'; '.join(parsed.errors)}")
        return result

    resumen_parts: List[str] = []
    for pc in parsed.cierres:
        label = key_label((pc.punto, pc.id_cierre))
        try:
            audit = classify_cierre(pc, clients.thresholds)
            cierre = upsert_cierre(pc, audit)
            upsert_alerta(cierre, audit)
            db.session.commit()
        except (SQLAlchemyError, ValueError) as e:
            db.session.rollback()
            logger.exception(f"Ingest inbox={inbox.id} error en {label}: {e}")
            resumen_parts.append(f"Error en {label}: {e}")
            continue

        result.cierres_procesados += 1
        result.cierre_ids.append(cierre.id)
        resumen_parts.append(f"{label}: {audit.nivel_riesgo}")

        if audit.nivel_riesgo in ("MEDIO", "ALTO"):
            # carpetas listas para que suban soportes
            try:
                clients.storage.ensure_date_folders(pc.punto, pc.fecha)
            except OSError as e:
                logger.warning(f"No se pudieron crear carpetas {pc.punto}/{pc.fecha}: {e}")

    result.resumen = " | ".join(resumen_parts)

    inbox = db.session.get(InboxRaw, result.inbox_id)
    inbox.punto = parsed.cierres[0].punto if parsed.cierres else None
    inbox.mark_processed(resumen=result.resumen)
    db.session.commit()

    logger.info(
        f"Ingest inbox={inbox.id} cierres={len(parsed.cierres)} "
        f"guardados={result.cierres_procesados} warnings={len(parsed.warnings)}"
    )
    return result
