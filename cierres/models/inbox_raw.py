# cierres/models/inbox_raw.py

from datetime import datetime

from cierres.extensions import db


class InboxRaw(db.Model):
    """
    Texto pegado por el admin, tal cual llegó.
    """
    __tablename__ = "inbox_raw"

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    texto_whatsapp = db.Column(db.Text, nullable=False)
    punto = db.Column(db.String(120))
    procesado = db.Column(db.Boolean, nullable=False, default=False)
    error = db.Column(db.Text)
    resumen = db.Column(db.Text)

    def mark_processed(self, resumen, error=None):
        self.procesado = True
        self.resumen = resumen
        self.error = error
