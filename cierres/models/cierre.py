# cierres/models/cierre.py

from datetime import datetime

from cierres.extensions import db

# campos que vienen del parser y se copian tal cual al hacer upsert
PARSED_FIELDS = (
    "punto", "id_cierre", "caja", "responsable", "hora_inicio", "hora_fin",
    "efectivo_inicial", "ventas_efectivo", "gastos_efectivo", "traslados_caja",
    "abonos_efectivo", "efectivo_total", "propinas", "domicilios", "total_efectivo_sistema",
    "ingreso_ventas", "descuentos", "creditos", "total_ingresos", "total_gastos",
    "formas_pago", "gastos_detalle",
    "efectivo_sistema", "efectivo_declarado", "efectivo_diferencia",
    "tarjetas_otros_sistema", "tarjetas_otros_declarado", "tarjetas_otros_diferencia",
    "sobrante_faltante_monto", "sobrante_faltante_tipo",
    "apertura_usuario", "apertura_valor",
    "hash_registro",
)


class Cierre(db.Model):
    __tablename__ = "cierres"
    __table_args__ = (
        db.UniqueConstraint("fecha", "punto", "id_cierre", name="uq_cierre_fecha_punto_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    fecha = db.Column(db.Date, nullable=False, index=True)
    punto = db.Column(db.String(120), nullable=False, index=True)
    id_cierre = db.Column(db.Integer, nullable=False, default=0)
    caja = db.Column(db.String(120))
    responsable = db.Column(db.String(120), index=True)
    hora_inicio = db.Column(db.String(60))
    hora_fin = db.Column(db.String(60))

    # Efectivo (COP enteros)
    efectivo_inicial = db.Column(db.BigInteger, nullable=False, default=0)
    ventas_efectivo = db.Column(db.BigInteger, nullable=False, default=0)
    gastos_efectivo = db.Column(db.BigInteger, nullable=False, default=0)
    traslados_caja = db.Column(db.BigInteger, nullable=False, default=0)
    abonos_efectivo = db.Column(db.BigInteger, nullable=False, default=0)
    efectivo_total = db.Column(db.BigInteger, nullable=False, default=0)
    propinas = db.Column(db.BigInteger, nullable=False, default=0)
    domicilios = db.Column(db.BigInteger, nullable=False, default=0)
    total_efectivo_sistema = db.Column(db.BigInteger, nullable=False, default=0)

    # Ventas
    ingreso_ventas = db.Column(db.BigInteger, nullable=False, default=0)
    descuentos = db.Column(db.BigInteger, nullable=False, default=0)
    creditos = db.Column(db.BigInteger, nullable=False, default=0)
    total_ingresos = db.Column(db.BigInteger, nullable=False, default=0)
    total_gastos = db.Column(db.BigInteger, nullable=False, default=0)

    formas_pago = db.Column(db.JSON, nullable=False, default=dict)      # {forma: monto}
    gastos_detalle = db.Column(db.JSON, nullable=False, default=list)   # [{categoria, monto, cantidad}]

    # Declarado vs sistema
    efectivo_sistema = db.Column(db.BigInteger, nullable=False, default=0)
    efectivo_declarado = db.Column(db.BigInteger, nullable=False, default=0)
    efectivo_diferencia = db.Column(db.BigInteger, nullable=False, default=0)
    tarjetas_otros_sistema = db.Column(db.BigInteger, nullable=False, default=0)
    tarjetas_otros_declarado = db.Column(db.BigInteger, nullable=False, default=0)
    tarjetas_otros_diferencia = db.Column(db.BigInteger, nullable=False, default=0)
    sobrante_faltante_monto = db.Column(db.BigInteger, nullable=False, default=0)
    sobrante_faltante_tipo = db.Column(db.String(20))  # SOBRANTE / FALTANTE / OK / SIN_DECLARADO

    # Apertura del siguiente turno
    apertura_usuario = db.Column(db.String(120))
    apertura_valor = db.Column(db.BigInteger, nullable=False, default=0)

    # Sobre
    efectivo_contado_sobre = db.Column(db.BigInteger)
    sobre_diferencia = db.Column(db.BigInteger)
    sobre_estado = db.Column(db.String(20))  # CONFIRMADO / DISCREPANCIA
    sobre_fecha_conteo = db.Column(db.DateTime)
    sobre_notas = db.Column(db.Text)

    observaciones_admin = db.Column(db.Text)

    hash_registro = db.Column(db.String(16), index=True)

    # Auditoría
    estado_auditoria_ia = db.Column(db.String(30), nullable=False, default="PENDIENTE")
    resultado_auditoria_ia = db.Column(db.Text)
    explicacion_auditoria_ia = db.Column(db.Text)
    fecha_revision = db.Column(db.DateTime)
    nivel_riesgo = db.Column(db.String(20))  # OK / BAJO / MEDIO / ALTO / NO_AUDITABLE
    accion_recomendada = db.Column(db.Text)
    mensaje_listo = db.Column(db.Text)

    def apply_classification(self, result):
        self.nivel_riesgo = result.nivel_riesgo
        self.estado_auditoria_ia = result.estado_auditoria_ia
        self.resultado_auditoria_ia = result.resultado
        self.accion_recomendada = result.accion_recomendada
        self.mensaje_listo = result.mensaje_listo

    def mark_ia_pending(self):
        self.estado_auditoria_ia = "IA_PENDIENTE"

    def mark_ia_done(self, resultado, explicacion, accion, mensaje):
        self.estado_auditoria_ia = "IA_COMPLETADO"
        self.resultado_auditoria_ia = resultado
        self.explicacion_auditoria_ia = explicacion
        self.accion_recomendada = accion
        self.mensaje_listo = mensaje
        self.fecha_revision = datetime.utcnow()

    def mark_ia_failed(self, error):
        self.estado_auditoria_ia = "IA_ERROR"
        self.resultado_auditoria_ia = f"Error: {error}"
        self.fecha_revision = datetime.utcnow()

    def to_dict(self) -> dict:
        d = {c.name: getattr(self, c.name) for c in self.__table__.columns}
        for k in ("fecha", "created_at", "sobre_fecha_conteo", "fecha_revision"):
            v = d.get(k)
            d[k] = v.isoformat() if v else None
        return d
