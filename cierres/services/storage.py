# cierres/services/storage.py

import base64
import hashlib
import mimetypes
import os
from typing import Dict, List, Optional

from werkzeug.utils import secure_filename

from cierres.services.evidence import EvidenceFile, FilePayload
from cierres.utils.logging import get_logger

logger = get_logger("storage")

OTROS_FOLDER = "07_Otros"


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def sha256_file(path: str, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def guess_media_type(name: str) -> str:
    media_type, _ = mimetypes.guess_type(name)
    return media_type or "application/octet-stream"


def is_supported_media(media_type: str) -> bool:
    return media_type.startswith("image/") or media_type == "application/pdf"


class LocalEvidenceStorage:
    """
    Soportes en disco: <base>/<punto>/<fecha>/<subcarpeta>/archivo.
    Archivos sueltos en la carpeta de la fecha cuentan como 07_Otros.
    """

    def __init__(self, base_folder: str, subfolders: List[str], max_file_bytes: int = 4 * 1024 * 1024):
        self.base_folder = base_folder
        self.subfolders = list(subfolders)
        self.max_file_bytes = max_file_bytes

    @classmethod
    def from_config(cls, config) -> "LocalEvidenceStorage":
        return cls(
            base_folder=config.get("EVIDENCE_FOLDER", "evidencia"),
            subfolders=config.get("EVIDENCE_SUBFOLDERS") or [OTROS_FOLDER],
            max_file_bytes=int(config.get("EVIDENCE_MAX_FILE_BYTES", 4 * 1024 * 1024)),
        )

    def date_folder(self, punto: str, fecha: str) -> str:
        return os.path.join(self.base_folder, secure_filename(punto) or "SIN_PUNTO", str(fecha))

    def ensure_date_folders(self, punto: str, fecha: str) -> str:
        root = self.date_folder(punto, fecha)
        for sub in self.subfolders:
            ensure_dir(os.path.join(root, sub))
        logger.info(f"Evidence folders ready punto={punto} fecha={fecha} path={root}")
        return root

    def save_evidence_file(self, file_storage, punto: str, fecha: str, subfolder: str) -> dict:
        if not file_storage:
            raise ValueError("No file provided")
        if subfolder not in self.subfolders:
            raise ValueError(f"Subcarpeta no válida: {subfolder}")

        original_name = file_storage.filename or "soporte"
        safe_name = secure_filename(original_name) or "soporte"

        folder = os.path.join(self.date_folder(punto, fecha), subfolder)
        ensure_dir(folder)
        stored_path = os.path.join(folder, safe_name)
        file_storage.save(stored_path)

        file_hash = sha256_file(stored_path)
        logger.info(f"Saved evidence punto={punto} fecha={fecha} folder={subfolder} name={safe_name} hash={file_hash}")

        return {
            "original_name": original_name,
            "stored_path": stored_path,
            "file_hash": file_hash,
            "folder": subfolder,
        }

    def list_files(self, punto: str, fecha: str) -> Dict[str, List[EvidenceFile]]:
        """
        {subcarpeta: [EvidenceFile]} para el punto/fecha. Sin carpeta -> {}.
        """
        root = self.date_folder(punto, fecha)
        result: Dict[str, List[EvidenceFile]] = {}
        if not os.path.isdir(root):
            return result

        for sub in self.subfolders:
            result[sub] = []
            sub_path = os.path.join(root, sub)
            if not os.path.isdir(sub_path):
                continue
            for name in sorted(os.listdir(sub_path)):
                path = os.path.join(sub_path, name)
                if os.path.isfile(path):
                    result[sub].append(EvidenceFile(name, sub, path, guess_media_type(name)))

        loose = [n for n in sorted(os.listdir(root)) if os.path.isfile(os.path.join(root, n))]
        if loose:
            result.setdefault(OTROS_FOLDER, [])
            for name in loose:
                result[OTROS_FOLDER].append(
                    EvidenceFile(name, OTROS_FOLDER, os.path.join(root, name), guess_media_type(name))
                )

        return result

    def fetch(self, f: EvidenceFile) -> Optional[FilePayload]:
        """
        Base64 del archivo. Solo imágenes/PDF de hasta max_file_bytes; lo demás -> None.
        """
        if not is_supported_media(f.media_type):
            return None

        size = os.path.getsize(f.path)
        if size > self.max_file_bytes:
            logger.warning(f"Archivo muy grande, se omite: {f.name} ({size // 1024}KB)")
            return None

        with open(f.path, "rb") as fh:
            data = base64.b64encode(fh.read()).decode("ascii")
        return FilePayload(name=f.name, folder=f.folder, data=data, media_type=f.media_type)


def collect_media_files(archivos: Dict[str, List[EvidenceFile]]) -> List[EvidenceFile]:
    files: List[EvidenceFile] = []
    for folder_files in archivos.values():
        for f in folder_files:
            if is_supported_media(f.media_type):
                files.append(f)
    return files


def evidencia_resumen(archivos: Dict[str, List[EvidenceFile]]) -> Dict[str, dict]:
    return {
        folder: {"cantidad": len(files), "archivos": [f.name for f in files]}
        for folder, files in archivos.items()
    }
