# cierres/exporters/excel_export.py

import os
from datetime import date

import pandas as pd

from cierres.models import Alerta
from cierres.services.metrics import cierres_periodo, compute_metricas


def export_periodo_to_excel(desde: date, hasta: date, output_folder: str) -> str:
    """
    Genera outputs/cierres/Cierres_<desde>_<hasta>.xlsx con multihoja:
      Cierres, Alertas, Por_Punto, Por_Cajero
    """
    out_dir = os.path.join(output_folder, "cierres")
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, f"Cierres_{desde.isoformat()}_{hasta.isoformat()}.xlsx")

    cierres = cierres_periodo(desde, hasta)
    ids = [c.id for c in cierres]
    alertas = (
        Alerta.query.filter(Alerta.cierre_id.in_(ids)).order_by(Alerta.created_at.asc()).all()
        if ids else []
    )

    df_cierres = pd.DataFrame([{
        "Fecha": c.fecha.isoformat(),
        "Punto": c.punto,
        "ID Cierre": c.id_cierre,
        "Responsable": c.responsable or "",
        "Hora Inicio": c.hora_inicio or "",
        "Hora Fin": c.hora_fin or "",
        "Efectivo Sistema": c.efectivo_sistema,
        "Efectivo Declarado": c.efectivo_declarado,
        "Diferencia": c.sobrante_faltante_monto,
        "Tipo": c.sobrante_faltante_tipo or "",
        "Total Ingresos": c.total_ingresos,
        "Total Gastos": c.total_gastos,
        "Apertura": c.apertura_valor,
        "Sobre Contado": c.efectivo_contado_sobre,
        "Sobre Estado": c.sobre_estado or "",
        "Nivel Riesgo": c.nivel_riesgo or "",
        "Estado IA": c.estado_auditoria_ia,
        "Veredicto": c.resultado_auditoria_ia or "",
    } for c in cierres])

    df_alertas = pd.DataFrame([{
        "Cierre": a.cierre_id,
        "Punto": a.punto,
        "Responsable": a.responsable or "",
        "Tipo": a.tipo_alerta,
        "Nivel": a.nivel_riesgo,
        "Diferencia": a.diferencia_total,
        "Estado": a.estado,
        "Acción": a.accion_recomendada or "",
    } for a in alertas])

    metricas = compute_metricas([{
        "fecha": c.fecha,
        "punto": c.punto,
        "responsable": c.responsable,
        "sobrante_faltante_monto": c.sobrante_faltante_monto,
        "sobrante_faltante_tipo": c.sobrante_faltante_tipo,
    } for c in cierres])

    df_punto = pd.DataFrame([{
        "Punto": p["punto"],
        "Cierres": p["cierres"],
        "Faltante": p["faltante"],
        "Sobrante": p["sobrante"],
    } for p in metricas["por_punto"]])

    df_cajero = pd.DataFrame([{
        "Responsable": c["responsable"],
        "Cierres": c["cierres"],
        "Faltante": c["faltante"],
        "Promedio Diferencia": c["promedio_dif"],
    } for c in metricas["por_cajero"]])

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df_cierres.to_excel(writer, sheet_name="Cierres", index=False)
        df_alertas.to_excel(writer, sheet_name="Alertas", index=False)
        df_punto.to_excel(writer, sheet_name="Por_Punto", index=False)
        df_cajero.to_excel(writer, sheet_name="Por_Cajero", index=False)

    return out_path
