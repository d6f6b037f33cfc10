# cierres/services/llm.py

from __future__ import annotations

from typing import List, Optional

import anthropic

from cierres.services.prompts import SYSTEM_PROMPT_AUDITOR, SYSTEM_PROMPT_EXTRACCION
from cierres.utils.logging import get_logger

logger = get_logger("llm")

BATCH_SEPARATOR = "\n\n--- SIGUIENTE LOTE ---\n\n"


def _response_text(msg) -> str:
    parts = [getattr(b, "text", "") for b in (msg.content or []) if getattr(b, "type", "") == "text"]
    return "".join(parts).strip()


def build_extraction_content(batch, batch_num: int) -> List[dict]:
    """
    Bloques del mensaje de extracción: encabezado del lote + cada archivo
    (image/document en base64) seguido de su etiqueta.
    """
    content: List[dict] = [{
        "type": "text",
        "text": f"LOTE {batch_num} — {len(batch)} archivo(s).\n"
                "Extraer datos en FORMATO COMPACTO (una línea por documento).",
    }]

    for i, f in enumerate(batch, start=1):
        if f.media_type == "application/pdf":
            content.append({
                "type": "document",
                "source": {"type": "base64", "media_type": "application/pdf", "data": f.data},
            })
        else:
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": f.media_type, "data": f.data},
            })
        content.append({"type": "text", "text": f"[Archivo {i}: {f.name} (carpeta: {f.folder})]"})

    return content


def build_synthesis_content(contexto: str, datos_extraidos: List[str], total_archivos: int) -> List[dict]:
    content: List[dict] = [{"type": "text", "text": contexto}]

    datos = [d for d in datos_extraidos if d and d.strip()]
    if datos:
        content.append({
            "type": "text",
            "text": f"=== DATOS EXTRAÍDOS DE IMÁGENES/PDFs ({total_archivos} procesados en {len(datos)} lotes) ===\n\n"
                    + BATCH_SEPARATOR.join(datos),
        })
    elif total_archivos == 0:
        content.append({
            "type": "text",
            "text": "=== SIN IMÁGENES === No se encontraron soportes visuales para este cierre.",
        })

    content.append({
        "type": "text",
        "text": "RECUERDA: Responde SOLO en formato JSON como se indica en las instrucciones del sistema.",
    })
    return content


class ClaudeAuditClient:
    """
    Colaborador de modelo: extracción por lotes (visión) y síntesis final.
    El cliente Anthropic se crea al primer uso (necesita ANTHROPIC_API_KEY).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 8192,
        extract_tokens: int = 4096,
        client=None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.extract_tokens = extract_tokens
        self._client = client

    @classmethod
    def from_config(cls, config) -> "ClaudeAuditClient":
        return cls(
            api_key=config.get("ANTHROPIC_API_KEY") or None,
            model=config.get("CLAUDE_MODEL", "claude-sonnet-4-5-20250929"),
            max_tokens=int(config.get("CLAUDE_MAX_TOKENS", 8192)),
            extract_tokens=int(config.get("CLAUDE_EXTRACT_TOKENS", 4096)),
        )

    @property
    def client(self):
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.api_key) if self.api_key else anthropic.Anthropic()
        return self._client

    def extract_batch(self, batch, batch_num: int) -> str:
        logger.info(f"Extract batch={batch_num} files={len(batch)}")
        msg = self.client.messages.create(
            model=self.model,
            max_tokens=self.extract_tokens,
            system=SYSTEM_PROMPT_EXTRACCION,
            messages=[{"role": "user", "content": build_extraction_content(batch, batch_num)}],
        )
        return _response_text(msg)

    def synthesize(self, contexto: str, datos_extraidos: List[str], total_archivos: int) -> str:
        logger.info(f"Synthesis lotes={len(datos_extraidos)} archivos={total_archivos}")
        msg = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT_AUDITOR,
            messages=[{
                "role": "user",
                "content": build_synthesis_content(contexto, datos_extraidos, total_archivos),
            }],
        )
        return _response_text(msg)
