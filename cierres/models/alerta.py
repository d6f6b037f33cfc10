# cierres/models/alerta.py

from datetime import datetime

from cierres.extensions import db


class Alerta(db.Model):
    __tablename__ = "alertas"

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    cierre_id = db.Column(db.Integer, db.ForeignKey("cierres.id", ondelete="CASCADE"), index=True)

    punto = db.Column(db.String(120), nullable=False)
    responsable = db.Column(db.String(120))
    diferencia_total = db.Column(db.BigInteger)
    tipo_alerta = db.Column(db.String(30), nullable=False)   # SOBRANTE / FALTANTE / SIN_DECLARADO
    nivel_riesgo = db.Column(db.String(20), nullable=False)  # BAJO / MEDIO / ALTO
    accion_recomendada = db.Column(db.Text)
    mensaje_listo = db.Column(db.Text)
    explicacion_ia = db.Column(db.Text)

    estado = db.Column(db.String(20), nullable=False, default="PENDIENTE")  # PENDIENTE / REVISADA / RESUELTA

    cierre = db.relationship("Cierre", backref=db.backref("alertas", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "cierre_id": self.cierre_id,
            "punto": self.punto,
            "responsable": self.responsable,
            "diferencia_total": self.diferencia_total,
            "tipo_alerta": self.tipo_alerta,
            "nivel_riesgo": self.nivel_riesgo,
            "accion_recomendada": self.accion_recomendada,
            "mensaje_listo": self.mensaje_listo,
            "explicacion_ia": self.explicacion_ia,
            "estado": self.estado,
        }
