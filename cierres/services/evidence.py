# cierres/services/evidence.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from cierres.extensions import db
from cierres.models import IAExtractionCache
from cierres.utils.logging import get_logger

logger = get_logger("evidence")

DEFAULT_BATCH_MAX_BYTES = 20 * 1024 * 1024


@dataclass(frozen=True)
class EvidenceFile:
    name: str
    folder: str
    path: str
    media_type: str


@dataclass(frozen=True)
class FilePayload:
    name: str
    folder: str
    data: str  # base64
    media_type: str


@dataclass
class ExtractionProgress:
    """
    Progreso de extracción de un cierre.
    NO_INICIADO -> EN_PROCESO -> COMPLETO (derivado de los campos).
    processed_files solo crece: un archivo registrado no se vuelve a enviar.
    """
    cierre_id: int
    processed_files: List[str] = field(default_factory=list)
    datos_extraidos: List[str] = field(default_factory=list)
    batches_completed: int = 0
    completo: bool = False

    @property
    def estado(self) -> str:
        if self.completo:
            return "COMPLETO"
        if self.batches_completed == 0 and not self.processed_files:
            return "NO_INICIADO"
        return "EN_PROCESO"

    def is_processed(self, name: str) -> bool:
        return name in self.processed_files

    def add_batch(self, output: str, names: Iterable[str]) -> None:
        self.datos_extraidos.append(output)
        for n in names:
            if n not in self.processed_files:
                self.processed_files.append(n)
        self.batches_completed += 1
        self.completo = False


class ExtractionCacheStore(ABC):
    @abstractmethod
    def get(self, cierre_id: int) -> Optional[ExtractionProgress]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, progress: ExtractionProgress) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, cierre_id: int) -> None:
        raise NotImplementedError


class SQLExtractionCacheStore(ExtractionCacheStore):
    """
    Cache en la tabla ia_extraction_cache. Cada upsert hace commit.
    """

    def get(self, cierre_id: int) -> Optional[ExtractionProgress]:
        row = db.session.get(IAExtractionCache, cierre_id)
        if not row:
            return None
        return ExtractionProgress(
            cierre_id=cierre_id,
            processed_files=list(row.processed_files or []),
            datos_extraidos=list(row.datos_extraidos or []),
            batches_completed=row.batches_completed or 0,
            completo=bool(row.completo),
        )

    def upsert(self, progress: ExtractionProgress) -> None:
        row = db.session.get(IAExtractionCache, progress.cierre_id)
        if not row:
            row = IAExtractionCache(cierre_id=progress.cierre_id)
            db.session.add(row)
        row.processed_files = list(progress.processed_files)
        row.datos_extraidos = list(progress.datos_extraidos)
        row.batches_completed = progress.batches_completed
        row.completo = progress.completo
        db.session.commit()

    def delete(self, cierre_id: int) -> None:
        IAExtractionCache.query.filter_by(cierre_id=cierre_id).delete(synchronize_session=False)
        db.session.commit()


class EvidenceBatchOrchestrator:
    """
    Agrupa soportes en lotes de hasta max_bytes (tamaño base64) y los manda
    al extractor. Persiste el progreso después de cada lote, así que una
    corrida interrumpida retoma sin repetir ni perder lotes.

    Colaboradores:
      source.fetch(EvidenceFile) -> FilePayload | None (None = se salta)
      extractor.extract_batch(List[FilePayload], batch_num) -> str (puede fallar)
      store: ExtractionCacheStore (sus errores se propagan)
    """

    def __init__(self, source, extractor, store: ExtractionCacheStore, max_bytes: int = DEFAULT_BATCH_MAX_BYTES):
        self.source = source
        self.extractor = extractor
        self.store = store
        self.max_bytes = max_bytes

    def run(self, cierre_id: int, files: List[EvidenceFile]) -> ExtractionProgress:
        progress = self.store.get(cierre_id) or ExtractionProgress(cierre_id=cierre_id)

        pending = [f for f in files if not progress.is_processed(f.name)]
        logger.info(
            f"Evidence run cierre={cierre_id} estado={progress.estado} "
            f"files={len(files)} pending={len(pending)} batches_done={progress.batches_completed}"
        )

        batch: List[FilePayload] = []
        size = 0

        for f in pending:
            payload = self.source.fetch(f)
            if payload is None:
                continue

            file_size = len(payload.data)

            # el lote se cierra ANTES del archivo que lo haría pasar del límite
            if size + file_size > self.max_bytes and batch:
                self._flush(progress, batch)
                batch = []
                size = 0

            batch.append(payload)
            size += file_size

        if batch:
            self._flush(progress, batch)

        progress.completo = True
        self.store.upsert(progress)
        return progress

    def _flush(self, progress: ExtractionProgress, batch: List[FilePayload]) -> None:
        batch_num = progress.batches_completed + 1
        try:
            output = self.extractor.extract_batch(batch, batch_num) or ""
        except Exception as e:
            logger.exception(f"Extraction failed cierre={progress.cierre_id} batch={batch_num}: {e}")
            output = ""

        progress.add_batch(output, [p.name for p in batch])
        self.store.upsert(progress)
        logger.info(
            f"Batch done cierre={progress.cierre_id} batch={batch_num} files={len(batch)} "
            f"chars={len(output)}"
        )
