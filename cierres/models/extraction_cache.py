# cierres/models/extraction_cache.py

from datetime import datetime

from cierres.extensions import db


class IAExtractionCache(db.Model):
    """
    Progreso de extracción de soportes por cierre (lotes ya procesados).
    Se borra cuando el análisis completo termina bien.
    """
    __tablename__ = "ia_extraction_cache"

    cierre_id = db.Column(db.Integer, db.ForeignKey("cierres.id", ondelete="CASCADE"), primary_key=True)

    processed_files = db.Column(db.JSON, nullable=False, default=list)
    datos_extraidos = db.Column(db.JSON, nullable=False, default=list)
    batches_completed = db.Column(db.Integer, nullable=False, default=0)
    completo = db.Column(db.Boolean, nullable=False, default=False)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
