# tests/conftest.py

import json

import pytest

from cierres import create_app
from cierres.config import Config
from cierres.extensions import db
from cierres.parsers.normalization import ParserTables
from cierres.services.classification import AuditThresholds
from cierres.services.clients import AuditClients
from cierres.services.storage import LocalEvidenceStorage


def build_sample(faltante=3850, id_cierre=1523, with_apertura=True, with_declarado=True):
    """Mensajes tal cual los pega el admin desde WhatsApp."""
    text = f"""[9/2/2026, 7:19:41 PM] Glorieta: CIERRE DE CAJA
REPORTES GLORIETA: LA GLORIETA EXPRESS
ID: {id_cierre}
Caja: Caja Principal
Usuario: Maria Lopez
Inicio: 09 Febrero 2026 , 7:05:10 am
Fin: 09 Febrero 2026 , 7:19:41 pm
▪️ CUADRE DE CAJA
Efectivo Inicial: $300,000
Ventas en Efectivo: $450,000
Gastos en Efectivo: $29,500
Traslados de caja: $0
Abonos en Efectivo: $0
(=) EFECTIVO $720,500
Propinas: $12,000
Domicilios: $0
TOTAL EFECTIVO $732,500
▪️ DATOS DE VENTAS
Ingreso de Ventas: $1,250,000
Descuentos: $0
Creditos: $0
(-) Gastos: $29,500
TOTAL INGRESOS $1,250,000
FORMAS DE PAGO:
Efectivo: $450,000
Tarjeta: $600,000
Nequi: $200,000
Bancolombia: $0
▪️ GASTOS:
General:  $-29,500 (1)
Fecha:
09 Febrero 2026 , 7:19:41 pm
"""
    if with_declarado:
        text += f"""[9/2/2026, 7:21:02 PM] Glorieta: DINERO DECLARADO
REPORTES GLORIETA: LA GLORIETA EXPRESS
ID: {id_cierre}
Efectivo Sistema: $391,850
Efectivo Declarado: $388,000
Efectivo Diferencia $-{faltante:,}
Tarjetas y Otros Sistema: $800,000
Tarjetas y Otros Declarado: $800,000
Tarjetas y Otros Diferencia $0
FALTANTE ${faltante:,}
"""
    if with_apertura:
        text += """[10/2/2026, 6:58:02 AM] Glorieta: APERTURA DE CAJA
REPORTES GLORIETA: LA GLORIETA EXPRESS
Usuario: Juan Perez
Valor: $300,000
"""
    return text


SAMPLE_TEXT = build_sample()

IA_RESPONSE = json.dumps({
    "veredicto": "FALTANTE_JUSTIFICADO",
    "resumen": "Gasto de domicilio sin registrar en POS",
    "efectivo": {"sistema": 391850, "declarado": 388000, "diferencia": -3850},
    "gastos": [{"concepto": "Domicilio", "monto": 3850, "verificado": True}],
    "anomalias": ["Factura sin NIT"],
    "accion": "Registrar el gasto en el POS",
}, ensure_ascii=False)


class FakeExtractor:
    """Reemplaza a Claude: registra lotes y responde texto fijo."""

    def __init__(self, fail_batches=(), synthesis=IA_RESPONSE, fail_synthesis=False):
        self.batches = []
        self.fail_batches = set(fail_batches)
        self.synthesis = synthesis
        self.fail_synthesis = fail_synthesis
        self.synth_calls = []

    def extract_batch(self, batch, batch_num):
        self.batches.append([p.name for p in batch])
        if batch_num in self.fail_batches:
            raise RuntimeError(f"timeout lote {batch_num}")
        return f"lote {batch_num}: " + ", ".join(p.name for p in batch)

    def synthesize(self, contexto, datos_extraidos, total_archivos):
        self.synth_calls.append((contexto, list(datos_extraidos), total_archivos))
        if self.fail_synthesis:
            raise RuntimeError("API caída")
        return self.synthesis


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send(self, subject, text, html):
        self.sent.append((subject, text, html))
        return True


class MemoryCacheStore:
    def __init__(self):
        self.rows = {}
        self.deleted = []

    def get(self, cierre_id):
        return self.rows.get(cierre_id)

    def upsert(self, progress):
        self.rows[progress.cierre_id] = progress

    def delete(self, cierre_id):
        self.deleted.append(cierre_id)
        self.rows.pop(cierre_id, None)


@pytest.fixture
def clients(tmp_path):
    return AuditClients(
        storage=LocalEvidenceStorage(
            base_folder=str(tmp_path / "evidencia"),
            subfolders=Config.EVIDENCE_SUBFOLDERS,
        ),
        llm=FakeExtractor(),
        cache_store=MemoryCacheStore(),
        notifier=FakeNotifier(),
        thresholds=AuditThresholds(),
        tables=ParserTables.from_config({"PUNTOS_ALIASES": Config.PUNTOS_ALIASES, "PUNTOS": Config.PUNTOS}),
    )


@pytest.fixture
def app(tmp_path, clients):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite://"
        CRON_SECRET = "test-secret"
        API_TOKEN = "test-token"
        EVIDENCE_FOLDER = str(tmp_path / "evidencia")
        OUTPUT_FOLDER = str(tmp_path / "outputs")

    app = create_app(TestConfig, clients=clients)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
