# tests/test_excel_export.py

from datetime import date

import pandas as pd

from cierres.exporters.excel_export import export_periodo_to_excel
from cierres.services.ingest import ingest_text

from conftest import build_sample


def test_export_periodo(app, clients, tmp_path):
    ingest_text(build_sample(faltante=12000, id_cierre=1), clients)
    ingest_text(build_sample(faltante=200, id_cierre=2), clients)

    path = export_periodo_to_excel(date(2026, 2, 1), date(2026, 2, 28), str(tmp_path / "out"))

    sheets = pd.read_excel(path, sheet_name=None)
    assert list(sheets) == ["Cierres", "Alertas", "Por_Punto", "Por_Cajero"]
    assert len(sheets["Cierres"]) == 2
    assert list(sheets["Alertas"]["Nivel"]) == ["MEDIO"]
    assert sheets["Por_Punto"].iloc[0]["Faltante"] == 12200


def test_export_empty_period(app, tmp_path):
    path = export_periodo_to_excel(date(2030, 1, 1), date(2030, 1, 31), str(tmp_path / "out"))
    sheets = pd.read_excel(path, sheet_name=None)
    assert sheets["Cierres"].empty
