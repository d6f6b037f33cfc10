# cierres/services/metrics.py

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from cierres.models import Alerta, Cierre
from cierres.utils.dates import now_local
from cierres.utils.money import parse_money

# un cierre "cuadra" si es OK o su diferencia cabe en esta tolerancia
TOLERANCIA_CUADRE = 500


def compute_metricas(rows: Iterable[dict], tolerancia: int = TOLERANCIA_CUADRE) -> Dict[str, Any]:
    """
    rows: iterable de dict con keys:
      fecha, punto, responsable, sobrante_faltante_monto, sobrante_faltante_tipo

    NOTA:
    - faltante se acumula en valor absoluto; sobrante con su signo.
    - promedio_dif por cajero usa la diferencia con signo (sobrante +, faltante -).
    - la tendencia sale ordenada por fecha.
    """
    total_cierres = 0
    cuadran = 0
    faltante_total = 0
    sobrante_total = 0

    por_punto: Dict[str, Dict[str, int]] = {}
    por_cajero: Dict[str, Dict[str, int]] = {}
    por_dia: Dict[str, int] = {}

    for r in rows:
        total_cierres += 1

        tipo = str(r.get("sobrante_faltante_tipo") or "").upper().strip()
        monto = parse_money(r.get("sobrante_faltante_monto"))
        faltante = abs(monto) if tipo == "FALTANTE" else 0
        sobrante = monto if tipo == "SOBRANTE" else 0

        if tipo == "OK" or abs(monto) <= tolerancia:
            cuadran += 1
        faltante_total += faltante
        sobrante_total += sobrante

        p = por_punto.setdefault(r.get("punto") or "N/A", {"cierres": 0, "faltante": 0, "sobrante": 0})
        p["cierres"] += 1
        p["faltante"] += faltante
        p["sobrante"] += sobrante

        c = por_cajero.setdefault(r.get("responsable") or "N/A", {"cierres": 0, "faltante": 0, "total_dif": 0})
        c["cierres"] += 1
        c["faltante"] += faltante
        c["total_dif"] += monto

        fecha = r.get("fecha")
        fecha = fecha.isoformat() if hasattr(fecha, "isoformat") else str(fecha or "")
        por_dia[fecha] = por_dia.get(fecha, 0) + monto

    return {
        "resumen": {
            "total_cierres": total_cierres,
            "cuadran": cuadran,
            "descuadres": total_cierres - cuadran,
            "faltante_total": faltante_total,
            "sobrante_total": sobrante_total,
        },
        "por_punto": [{"punto": k, **v} for k, v in por_punto.items()],
        "por_cajero": [
            {
                "responsable": k,
                "cierres": v["cierres"],
                "faltante": v["faltante"],
                "promedio_dif": int(round(v["total_dif"] / v["cierres"])),
            }
            for k, v in por_cajero.items()
        ],
        "tendencia": [{"fecha": k, "diferencia": v} for k, v in sorted(por_dia.items())],
    }


def cierres_periodo(desde: date, hasta: Optional[date] = None) -> List[Cierre]:
    q = Cierre.query.filter(Cierre.fecha >= desde)
    if hasta is not None:
        q = q.filter(Cierre.fecha <= hasta)
    return q.order_by(Cierre.fecha.asc(), Cierre.id.asc()).all()


def metricas_periodo(dias: int = 7, tz_name: str = "America/Bogota") -> Dict[str, Any]:
    desde = now_local(tz_name).date() - timedelta(days=dias)
    rows = [
        {
            "fecha": c.fecha,
            "punto": c.punto,
            "responsable": c.responsable,
            "sobrante_faltante_monto": c.sobrante_faltante_monto,
            "sobrante_faltante_tipo": c.sobrante_faltante_tipo,
        }
        for c in cierres_periodo(desde)
    ]
    out = compute_metricas(rows)
    out["desde"] = desde.isoformat()
    return out


def estado_sistema() -> Dict[str, int]:
    return {
        "pendientes_ia": Cierre.query.filter(Cierre.estado_auditoria_ia == "IA_PENDIENTE").count(),
        "esperando_sobre": Cierre.query.filter(Cierre.estado_auditoria_ia == "ESPERANDO_SOBRE").count(),
        "alertas_activas": Alerta.query.filter(Alerta.estado == "PENDIENTE").count(),
    }
