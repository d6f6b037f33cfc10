# tests/test_segmenter.py

from cierres.parsers.normalization import ParserTables
from cierres.parsers.segmenter import find_block_start, split_into_blocks

from conftest import SAMPLE_TEXT

TABLES = ParserTables()


def test_split_sample_into_three_blocks():
    blocks = split_into_blocks(SAMPLE_TEXT, TABLES)
    assert [b.kind for b in blocks] == ["CIERRE", "DECLARADO", "APERTURA"]

    # sin huecos ni traslapes
    assert blocks[0].start == 0
    for prev, nxt in zip(blocks, blocks[1:]):
        assert prev.end == nxt.start
    assert blocks[-1].end == len(SAMPLE_TEXT)
    for b in blocks:
        assert b.text == SAMPLE_TEXT[b.start:b.end].strip()

    assert blocks[1].text.startswith("[9/2/2026, 7:21:02 PM]")


def test_no_markers_no_blocks():
    assert split_into_blocks("hola, buenas noches", TABLES) == []
    assert split_into_blocks("", TABLES) == []


def test_markers_are_case_insensitive():
    blocks = split_into_blocks("x\n\ncierre de caja\nID: 1\n", TABLES)
    assert len(blocks) == 1
    assert blocks[0].kind == "CIERRE"


def test_fallback_without_header():
    text = "linea uno\nlinea dos\nDINERO DECLARADO\nID: 5"
    start = find_block_start(text, text.index("DINERO"))
    assert text[start:].startswith("linea dos")


def test_same_header_two_markers():
    text = "[9/2/2026, 7:19:41 PM] X: CIERRE DE CAJA y DINERO DECLARADO\nID: 7\n"
    blocks = split_into_blocks(text, TABLES)
    assert len(blocks) == 2
    full = [b for b in blocks if b.text]
    assert len(full) == 1
    assert full[0].kind == "CIERRE"


def test_block_text_is_trimmed():
    text = "\n\n[9/2/2026, 7:19:41 PM] X: CIERRE DE CAJA\nID: 7\n\n\n"
    blocks = split_into_blocks(text, TABLES)
    assert blocks[0].text == "[9/2/2026, 7:19:41 PM] X: CIERRE DE CAJA\nID: 7"
    assert blocks[0].end == len(text)
