# scripts/seed_dev.py

from cierres import create_app
from cierres.extensions import db
from cierres.services.ingest import ingest_text

TEXTO = """[9/2/2026, 7:19:41 PM] Glorieta: CIERRE DE CAJA
REPORTES GLORIETA: LA GLORIETA EXPRESS
ID: 1523
Caja: Caja Principal
Usuario: Maria Lopez
Inicio: 09 Febrero 2026 , 7:05:10 am
Fin: 09 Febrero 2026 , 7:19:41 pm
▪️ CUADRE DE CAJA
Efectivo Inicial: $300,000
Ventas en Efectivo: $450,000
Gastos en Efectivo: $29,500
(=) EFECTIVO $720,500
TOTAL EFECTIVO $732,500
▪️ DATOS DE VENTAS
Ingreso de Ventas: $1,250,000
TOTAL INGRESOS $1,250,000
FORMAS DE PAGO:
Efectivo: $450,000
Tarjeta: $600,000
Nequi: $200,000
▪️ GASTOS:
General:  $-29,500 (1)
Fecha:
09 Febrero 2026 , 7:19:41 pm
[9/2/2026, 7:21:02 PM] Glorieta: DINERO DECLARADO
REPORTES GLORIETA: LA GLORIETA EXPRESS
ID: 1523
Efectivo Sistema: $391,850
Efectivo Declarado: $388,000
Efectivo Diferencia $-3,850
FALTANTE $3,850
[10/2/2026, 6:58:02 AM] Glorieta: APERTURA DE CAJA
REPORTES GLORIETA: LA GLORIETA EXPRESS
Usuario: Juan Perez
Valor: $300,000
"""

app = create_app()

with app.app_context():
    db.create_all()
    result = ingest_text(TEXTO, app.extensions["cierres"])
    print("Ingest:", result.resumen or result.errors)
