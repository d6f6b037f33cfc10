# tests/test_llm.py

from types import SimpleNamespace

from cierres.services.evidence import FilePayload
from cierres.services.llm import (
    BATCH_SEPARATOR, ClaudeAuditClient, build_extraction_content, build_synthesis_content,
)
from cierres.services.prompts import SYSTEM_PROMPT_AUDITOR, SYSTEM_PROMPT_EXTRACCION


class FakeMessages:
    def __init__(self, text):
        self.text = text
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(content=[
            SimpleNamespace(type="text", text=self.text),
            SimpleNamespace(type="tool_use", name="x"),
        ])


def _client(text="respuesta"):
    messages = FakeMessages(text)
    return ClaudeAuditClient(api_key="k", model="m", max_tokens=100, extract_tokens=50,
                             client=SimpleNamespace(messages=messages)), messages


def test_extraction_content_blocks():
    batch = [
        FilePayload("a.jpg", "01_Gastos", "AAA", "image/jpeg"),
        FilePayload("b.pdf", "02_Banco", "BBB", "application/pdf"),
    ]
    content = build_extraction_content(batch, 3)

    assert content[0]["text"].startswith("LOTE 3 — 2 archivo(s).")
    assert content[1]["type"] == "image"
    assert content[1]["source"]["media_type"] == "image/jpeg"
    assert content[2]["text"] == "[Archivo 1: a.jpg (carpeta: 01_Gastos)]"
    assert content[3]["type"] == "document"
    assert content[4]["text"] == "[Archivo 2: b.pdf (carpeta: 02_Banco)]"


def test_synthesis_content_skips_empty_batches():
    content = build_synthesis_content("CTX", ["lote 1", "", "lote 3"], 5)
    assert content[0]["text"] == "CTX"
    assert "(5 procesados en 2 lotes)" in content[1]["text"]
    assert content[1]["text"].endswith("lote 1" + BATCH_SEPARATOR + "lote 3")
    assert "JSON" in content[-1]["text"]


def test_synthesis_content_without_images():
    content = build_synthesis_content("CTX", [], 0)
    assert "SIN IMÁGENES" in content[1]["text"]
    assert len(content) == 3


def test_extract_batch_calls_api():
    client, messages = _client("lote ok")
    out = client.extract_batch([FilePayload("a.jpg", "01_Gastos", "AAA", "image/jpeg")], 1)

    assert out == "lote ok"
    call = messages.calls[0]
    assert call["model"] == "m"
    assert call["max_tokens"] == 50
    assert call["system"] == SYSTEM_PROMPT_EXTRACCION


def test_synthesize_calls_api():
    client, messages = _client('{"veredicto": "OK"}')
    assert client.synthesize("CTX", ["x"], 1) == '{"veredicto": "OK"}'
    assert messages.calls[0]["system"] == SYSTEM_PROMPT_AUDITOR
    assert messages.calls[0]["max_tokens"] == 100


def test_from_config():
    c = ClaudeAuditClient.from_config({"ANTHROPIC_API_KEY": "", "CLAUDE_MODEL": "x", "CLAUDE_MAX_TOKENS": "10"})
    assert c.api_key is None
    assert c.model == "x"
    assert c.max_tokens == 10
