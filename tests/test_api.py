# tests/test_api.py

import io

from cierres.extensions import db
from cierres.models import Alerta, Cierre

from conftest import SAMPLE_TEXT, build_sample

CRON = {"Authorization": "Bearer test-secret"}


def _ingest(client, texto=SAMPLE_TEXT):
    return client.post("/api/ingest", json={"texto": texto})


def test_health(client):
    assert client.get("/health/").get_json() == {"status": "healthy"}
    assert client.get("/health/db").status_code == 200


def test_parse_preview_does_not_save(client):
    r = client.post("/api/parse", json={"texto": SAMPLE_TEXT})
    assert r.status_code == 200
    assert r.get_json()["cierres"][0]["punto"] == "La Glorieta Express"
    assert Cierre.query.count() == 0


def test_ingest_and_list(client):
    r = _ingest(client)
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["cierres_procesados"] == 1

    r = client.get("/api/cierres", query_string={"punto": "La Glorieta Express", "fecha": "2026-02-09"})
    data = r.get_json()
    assert data["count"] == 1
    assert data["data"][0]["fecha"] == "2026-02-09"

    cierre_id = data["data"][0]["id"]
    detalle = client.get(f"/api/cierres/{cierre_id}").get_json()
    assert detalle["alertas"][0]["tipo_alerta"] == "FALTANTE"
    assert detalle["evidencia"] == {}


def test_ingest_errors(client):
    r = _ingest(client, "  ")
    assert r.status_code == 400
    assert r.get_json()["error"] == "Texto vacío"

    r = _ingest(client, "hola")
    assert r.status_code == 400
    assert r.get_json()["success"] is False


def test_webhook_token(client, app):
    r = client.post("/api/webhook", json={"texto": SAMPLE_TEXT})
    assert r.status_code == 401
    r = client.post("/api/webhook", json={"texto": SAMPLE_TEXT, "token": "otro"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Token inválido"
    r = client.post("/api/webhook", json={"texto": SAMPLE_TEXT, "token": "tóken"})
    assert r.status_code == 401

    app.config["API_TOKEN"] = ""
    r = client.post("/api/webhook", json={"texto": SAMPLE_TEXT, "token": ""})
    assert r.status_code == 401
    assert Cierre.query.count() == 0


def test_webhook_ingest(client):
    r = client.post("/api/webhook", json={"text": "   ", "token": "test-token"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "Texto vacío"

    r = client.post("/api/webhook", json={"texto": "hola", "token": "test-token"})
    assert r.status_code == 400
    assert r.get_json()["success"] is False

    r = client.post("/api/webhook", json={"texto": SAMPLE_TEXT, "token": "test-token"})
    assert r.status_code == 200
    assert r.get_json() == {"success": True, "cierres_procesados": 1}
    assert Cierre.query.one().punto == "La Glorieta Express"


def test_cierre_not_found(client):
    r = client.get("/api/cierres/999")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Cierre no encontrado"


def test_observaciones(client):
    _ingest(client)
    c = Cierre.query.one()

    assert client.patch(f"/api/cierres/{c.id}/observaciones", json={}).status_code == 400

    r = client.patch(f"/api/cierres/{c.id}/observaciones", json={"observaciones": "El gasto lo aprobó el gerente"})
    assert r.status_code == 200
    assert db.session.get(Cierre, c.id).observaciones_admin == "El gasto lo aprobó el gerente"


def test_sobres_flow(client):
    _ingest(client, build_sample(faltante=12000))
    pendientes = client.get("/api/sobres").get_json()["data"]
    assert len(pendientes) == 1

    r = client.post("/api/sobres", json={"cierre_id": pendientes[0]["id"], "efectivo_contado": 88000})
    body = r.get_json()
    assert body["sobre_estado"] == "CONFIRMADO"
    assert body["nuevo_estado"] == "IA_PENDIENTE"
    assert client.get("/api/sobres").get_json()["data"] == []

    assert client.post("/api/sobres", json={}).status_code == 400
    assert client.post("/api/sobres", json={"cierre_id": 999, "efectivo_contado": 1}).status_code == 404


def test_evidencia_upload(client):
    _ingest(client)
    c = Cierre.query.one()

    r = client.post(
        f"/api/cierres/{c.id}/evidencia",
        data={"carpeta": "01_Gastos", "files": (io.BytesIO(b"\xff\xd8jpeg"), "factura.jpg")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    assert r.get_json()["archivos"] == ["factura.jpg"]

    listado = client.get(f"/api/cierres/{c.id}/evidencia").get_json()["data"]
    assert listado["01_Gastos"]["archivos"] == ["factura.jpg"]

    r = client.post(
        f"/api/cierres/{c.id}/evidencia",
        data={"carpeta": "99_X", "files": (io.BytesIO(b"x"), "a.jpg")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400


def test_ia_trigger(client):
    _ingest(client, build_sample(faltante=12000))
    c = Cierre.query.one()

    r = client.post("/api/ia/trigger", json={"cierre_id": c.id})
    assert r.status_code == 200
    assert r.get_json()["estado"] == "IA_COMPLETADO"

    assert client.post("/api/ia/trigger", json={}).status_code == 400


def test_cron_requires_secret(client):
    assert client.get("/api/cron/ia-queue").status_code == 401
    assert client.get("/api/cron/ia-queue", headers={"Authorization": "Bearer otro"}).status_code == 401

    r = client.get("/api/cron/ia-queue", headers=CRON)
    assert r.get_json() == {"message": "No hay cierres pendientes de IA"}


def test_cron_ia_queue_processes_one(client):
    _ingest(client, build_sample(faltante=12000))
    c = Cierre.query.one()
    c.mark_ia_pending()
    db.session.commit()

    r = client.get("/api/cron/ia-queue", headers=CRON)
    assert r.get_json()["message"] == "Análisis IA completado"
    assert db.session.get(Cierre, c.id).estado_auditoria_ia == "IA_COMPLETADO"


def test_cron_daily_summary_without_cierres(client):
    r = client.get("/api/cron/daily-summary", headers=CRON)
    assert r.get_json() == {"message": "Sin cierres hoy", "enviado": False}


def test_cron_evidence_folders(client, tmp_path):
    r = client.get("/api/cron/evidence-folders", headers=CRON)
    body = r.get_json()
    assert len(body["results"]) == 4
    assert (tmp_path / "evidencia" / "La_Glorieta" / body["fecha"] / "07_Otros").is_dir()


def test_alertas(client):
    _ingest(client)
    data = client.get("/api/alertas").get_json()
    assert data["count"] == 1
    alerta_id = data["data"][0]["id"]

    assert client.patch("/api/alertas", json={"id": alerta_id, "estado": "RARO"}).status_code == 400
    assert client.patch("/api/alertas", json={"id": 999, "estado": "RESUELTA"}).status_code == 404

    r = client.patch("/api/alertas", json={"id": alerta_id, "estado": "RESUELTA"})
    assert r.status_code == 200
    assert db.session.get(Alerta, alerta_id).estado == "RESUELTA"
    assert client.get("/api/alertas").get_json()["count"] == 0


def test_estado_and_metricas(client):
    _ingest(client, build_sample(faltante=12000))
    assert client.get("/api/estado").get_json()["esperando_sobre"] == 1

    m = client.get("/api/metricas?dias=100000").get_json()
    assert m["resumen"]["total_cierres"] == 1
    assert client.get("/api/metricas?dias=x").status_code == 400


def test_export(client):
    _ingest(client)
    r = client.get("/api/export?desde=2026-02-01&hasta=2026-02-28")
    assert r.status_code == 200
    assert "Cierres_2026-02-01_2026-02-28.xlsx" in r.headers["Content-Disposition"]
    assert r.data[:2] == b"PK"
