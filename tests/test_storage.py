# tests/test_storage.py

import base64
import io

import pytest
from werkzeug.datastructures import FileStorage

from cierres.config import Config
from cierres.services.storage import LocalEvidenceStorage, collect_media_files, evidencia_resumen


@pytest.fixture
def storage(tmp_path):
    return LocalEvidenceStorage(str(tmp_path), Config.EVIDENCE_SUBFOLDERS, max_file_bytes=1024)


def test_ensure_date_folders(storage, tmp_path):
    root = storage.ensure_date_folders("La Glorieta", "2026-02-09")
    for sub in Config.EVIDENCE_SUBFOLDERS:
        assert (tmp_path / "La_Glorieta" / "2026-02-09" / sub).is_dir()
    assert root == str(tmp_path / "La_Glorieta" / "2026-02-09")


def test_save_and_list(storage, tmp_path):
    fs = FileStorage(stream=io.BytesIO(b"\xff\xd8jpeg"), filename="../factura 1.jpg")
    info = storage.save_evidence_file(fs, "La Glorieta", "2026-02-09", "01_Gastos")
    assert info["stored_path"].endswith("factura_1.jpg")
    assert len(info["file_hash"]) == 64

    # suelto en la carpeta de la fecha -> 07_Otros
    (tmp_path / "La_Glorieta" / "2026-02-09" / "nota.txt").write_text("hola")

    archivos = storage.list_files("La Glorieta", "2026-02-09")
    assert [f.name for f in archivos["01_Gastos"]] == ["factura_1.jpg"]
    assert [f.name for f in archivos["07_Otros"]] == ["nota.txt"]

    resumen = evidencia_resumen(archivos)
    assert resumen["01_Gastos"] == {"cantidad": 1, "archivos": ["factura_1.jpg"]}
    assert resumen["02_Banco"]["cantidad"] == 0

    media = collect_media_files(archivos)
    assert [f.name for f in media] == ["factura_1.jpg"]


def test_save_rejects_unknown_subfolder(storage):
    fs = FileStorage(stream=io.BytesIO(b"x"), filename="a.jpg")
    with pytest.raises(ValueError):
        storage.save_evidence_file(fs, "La Glorieta", "2026-02-09", "99_Nada")


def test_list_without_folder(storage):
    assert storage.list_files("La Glorieta", "2030-01-01") == {}


def test_fetch_limits(storage, tmp_path):
    folder = tmp_path / "La_Glorieta" / "2026-02-09" / "01_Gastos"
    folder.mkdir(parents=True)
    (folder / "ok.png").write_bytes(b"png-data")
    (folder / "grande.png").write_bytes(b"x" * 2048)
    (folder / "doc.pdf").write_bytes(b"%PDF-1.4")

    archivos = {f.name: f for f in storage.list_files("La Glorieta", "2026-02-09")["01_Gastos"]}

    payload = storage.fetch(archivos["ok.png"])
    assert payload.media_type == "image/png"
    assert base64.b64decode(payload.data) == b"png-data"

    assert storage.fetch(archivos["grande.png"]) is None
    assert storage.fetch(archivos["doc.pdf"]).media_type == "application/pdf"
