# tests/test_whatsapp_parser.py

from cierres.config import Config
from cierres.parsers.cierre_block import parse_formas_pago, parse_gastos_detalle
from cierres.parsers.normalization import ParserTables
from cierres.parsers.whatsapp import parse_whatsapp_text
from cierres.utils.hashing import hash_record

from conftest import SAMPLE_TEXT, build_sample

DECLARADO_HEADER = "[9/2/2026, 7:21:02 PM]"

TABLES = ParserTables.from_config({"PUNTOS_ALIASES": Config.PUNTOS_ALIASES, "PUNTOS": Config.PUNTOS})


def test_parse_full_sample():
    result = parse_whatsapp_text(SAMPLE_TEXT, TABLES)

    assert result.success is True
    assert result.errors == []
    assert len(result.cierres) == 1

    c = result.cierres[0]
    assert c.punto == "La Glorieta Express"
    assert c.id_cierre == 1523
    assert c.caja == "Caja Principal"
    assert c.responsable == "Maria Lopez"
    assert c.fecha == "2026-02-09"

    assert c.efectivo_inicial == 300000
    assert c.ventas_efectivo == 450000
    assert c.gastos_efectivo == 29500
    assert c.efectivo_total == 720500
    assert c.propinas == 12000
    assert c.total_efectivo_sistema == 732500
    assert c.ingreso_ventas == 1250000
    assert c.total_ingresos == 1250000
    assert c.total_gastos == 29500

    assert c.formas_pago == {"Efectivo": 450000, "Tarjeta": 600000, "Nequi": 200000}
    assert c.gastos_detalle == [{"categoria": "General", "monto": 29500, "cantidad": 1}]

    assert c.efectivo_sistema == 391850
    assert c.efectivo_declarado == 388000
    assert c.efectivo_diferencia == -3850
    assert c.sobrante_faltante_tipo == "FALTANTE"
    assert c.sobrante_faltante_monto == -3850

    assert c.apertura_usuario == "Juan Perez"
    assert c.apertura_valor == 300000

    assert c.hash_registro == hash_record(c)


def test_parse_without_declarado():
    result = parse_whatsapp_text(build_sample(with_declarado=False, with_apertura=False), TABLES)
    c = result.cierres[0]
    assert c.sobrante_faltante_tipo == "SIN_DECLARADO"
    assert c.efectivo_declarado == 0
    assert c.sobrante_faltante_monto == 0
    assert c.apertura_valor == 0


def test_orphan_declarado_is_warning():
    orphan = build_sample(id_cierre=11, with_apertura=False)
    text = build_sample(id_cierre=10, with_apertura=False) + orphan[orphan.index(DECLARADO_HEADER):]
    result = parse_whatsapp_text(text, TABLES)
    assert len(result.cierres) == 1
    assert any("DINERO DECLARADO sin CIERRE DE CAJA correspondiente: La Glorieta Express (ID 11)" in w
               for w in result.warnings)


def test_empty_text():
    result = parse_whatsapp_text("   ", TABLES)
    assert result.success is False
    assert result.errors == ["Texto vacío"]


def test_no_markers():
    result = parse_whatsapp_text("hola a todos", TABLES)
    assert result.success is False
    assert "No se encontraron mensajes" in result.errors[0]


def test_only_declarado_is_failure():
    text = build_sample(with_apertura=False)
    result = parse_whatsapp_text(text[text.index(DECLARADO_HEADER):], TABLES)
    assert result.success is False
    assert result.errors == ["No se encontraron cierres válidos en el texto"]
    assert len(result.warnings) == 1


def test_unknown_punto_warning():
    text = SAMPLE_TEXT.replace("LA GLORIETA EXPRESS", "PANADERIA CENTRAL")
    result = parse_whatsapp_text(text, TABLES)
    assert result.cierres[0].punto == "PANADERIA CENTRAL"
    assert any("no reconocido" in w for w in result.warnings)


def test_formas_pago_and_gastos_sections():
    text = "FORMAS DE PAGO:\nEfectivo: $10,000\nDaviplata: $0\n▪️ GASTOS:\nNo disponible\n"
    assert parse_formas_pago(text) == {"Efectivo": 10000}
    assert parse_gastos_detalle(text) == []


def test_result_to_dict():
    d = parse_whatsapp_text(SAMPLE_TEXT, TABLES).to_dict()
    assert d["success"] is True
    assert d["cierres"][0]["id_cierre"] == 1523
