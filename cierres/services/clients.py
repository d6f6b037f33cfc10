# cierres/services/clients.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from cierres.parsers.normalization import ParserTables
from cierres.services.classification import AuditThresholds
from cierres.services.evidence import DEFAULT_BATCH_MAX_BYTES, SQLExtractionCacheStore
from cierres.services.llm import ClaudeAuditClient
from cierres.services.notifications import SMTPNotifier
from cierres.services.storage import LocalEvidenceStorage


@dataclass
class AuditClients:
    """
    Colaboradores externos de la app (soportes, Claude, cache, correo).
    Se arma una vez en create_app; los tests inyectan fakes.
    """
    storage: Any
    llm: Any
    cache_store: Any
    notifier: Any
    thresholds: AuditThresholds
    tables: ParserTables
    batch_max_bytes: int = DEFAULT_BATCH_MAX_BYTES
    timezone: str = "America/Bogota"


def build_clients(config: Mapping[str, Any]) -> AuditClients:
    return AuditClients(
        storage=LocalEvidenceStorage.from_config(config),
        llm=ClaudeAuditClient.from_config(config),
        cache_store=SQLExtractionCacheStore(),
        notifier=SMTPNotifier.from_config(config),
        thresholds=AuditThresholds.from_config(config),
        tables=ParserTables.from_config(config),
        batch_max_bytes=int(config.get("CLAUDE_BATCH_MAX_BYTES", DEFAULT_BATCH_MAX_BYTES)),
        timezone=config.get("TIMEZONE", "America/Bogota"),
    )
