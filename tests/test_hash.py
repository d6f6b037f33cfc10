# tests/test_hash.py

from cierres.utils.hashing import hash_record


def _rec(**kw):
    base = {
        "fecha": "2026-02-09",
        "punto": "La Glorieta Express",
        "id_cierre": 1523,
        "efectivo_total": 720500,
        "total_ingresos": 1250000,
        "sobrante_faltante_monto": -3850,
    }
    base.update(kw)
    return base


def test_hash_is_stable_and_short():
    h = hash_record(_rec())
    assert len(h) == 16
    assert h == hash_record(_rec())
    assert all(c in "0123456789abcdef" for c in h)


def test_hash_ignores_non_identity_fields():
    assert hash_record(_rec(responsable="Otra")) == hash_record(_rec())


def test_hash_changes_with_identity_fields():
    assert hash_record(_rec(id_cierre=1524)) != hash_record(_rec())
    assert hash_record(_rec(sobrante_faltante_monto=-3851)) != hash_record(_rec())
