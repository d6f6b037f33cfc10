# cierres/parsers/base.py

from abc import ABC, abstractmethod
from typing import Any

from cierres.parsers.normalization import ParserTables


class BlockParser(ABC):
    """
    Extractor de un tipo de bloque (CIERRE / DECLARADO / APERTURA).
    """
    kind: str = ""

    def __init__(self, tables: ParserTables):
        self.tables = tables

    @abstractmethod
    def parse(self, text: str) -> Any:
        """
        Texto del bloque -> registro intermedio tipado.
        No lanza: campos ausentes quedan en ""/0/None.
        """
        raise NotImplementedError
