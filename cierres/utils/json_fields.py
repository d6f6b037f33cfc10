# cierres/utils/json_fields.py

from typing import Any, Dict, List


# Lectura tolerante de campos de JSON devuelto por el modelo


def as_text(v) -> str:
    if v is None:
        return ""
    return str(v).strip()


def as_list(v) -> List[Any]:
    return v if isinstance(v, list) else []


def as_dict(v) -> Dict[str, Any]:
    return v if isinstance(v, dict) else {}


def truthy(v) -> bool:
    """true/"si"/"ok"/1 cuentan como verdadero; el resto por bool()."""
    if isinstance(v, str):
        return v.strip().lower() in ("true", "si", "sí", "ok", "1")
    return bool(v)
