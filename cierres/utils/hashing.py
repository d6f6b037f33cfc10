# cierres/utils/hashing.py

import hashlib

HASH_FIELDS = (
    "fecha",
    "punto",
    "id_cierre",
    "efectivo_total",
    "total_ingresos",
    "sobrante_faltante_monto",
)


def _field(record, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def hash_record(record) -> str:
    """
    Huella de dedup de un cierre: sha256 de los campos de identidad
    unidos por "|", recortada a 16 hex.
    Acepta dict u objeto con atributos.
    """
    parts = []
    for name in HASH_FIELDS:
        v = _field(record, name)
        parts.append("" if v is None else str(v))
    key = "|".join(parts)
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
