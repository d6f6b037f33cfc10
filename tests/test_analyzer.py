# tests/test_analyzer.py

from cierres.extensions import db
from cierres.models import Cierre
from cierres.services.analyzer import build_contexto_cierre, otros_cierres_del_dia
from cierres.services.ingest import ingest_text
from cierres.services.sobre import registrar_sobre

from conftest import build_sample


def test_contexto_includes_all_sections(app, clients):
    ingest_text(build_sample(faltante=12000, id_cierre=1), clients)
    ingest_text(build_sample(faltante=200, id_cierre=2), clients)
    c1, c2 = Cierre.query.order_by(Cierre.id_cierre).all()

    registrar_sobre(c1.id, 88000, "todo en billetes", clients.thresholds)
    c1.observaciones_admin = "El gerente autorizó el gasto"
    db.session.commit()

    otros = otros_cierres_del_dia(c1)
    assert [o.id for o in otros] == [c2.id]

    evidencia = {"01_Gastos": {"cantidad": 1, "archivos": ["f.jpg"]}, "02_Banco": {"cantidad": 0, "archivos": []}}
    ctx = build_contexto_cierre(c1, evidencia, otros)

    assert "Punto: La Glorieta Express\nFecha: 2026-02-09" in ctx
    assert "Efectivo Declarado: $388,000" in ctx
    assert "Resultado: FALTANTE $12,000" in ctx
    assert "Base dejada al siguiente turno (apertura): $300,000 (Juan Perez)" in ctx
    assert "--- CONFIRMACIÓN DE SOBRE ---\nContado: $88,000" in ctx
    assert "Notas: todo en billetes" in ctx
    assert "El gerente autorizó el gasto" in ctx
    assert ">> Maria Lopez (ID 2): FALTANTE $200" in ctx
    assert "01_Gastos: 1 archivo(s) - f.jpg" in ctx
    assert "02_Banco: SIN EVIDENCIA" in ctx


def test_contexto_without_evidence_folder(app, clients):
    ingest_text(build_sample(), clients)
    ctx = build_contexto_cierre(Cierre.query.one(), {}, [])
    assert "Sin carpeta de soportes para este punto/fecha" in ctx
    assert "OTROS CIERRES" not in ctx
